"""Metric name helpers"""
import re
from typing import List

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_]")


def normalize_metric_name(metric_type: str) -> str:
    """Turn a Cloud Monitoring metric type into an exposition-safe name.

    ``compute.googleapis.com/instance/cpu/utilization`` becomes
    ``compute_googleapis_com_instance_cpu_utilization``.
    """
    words: List[str] = []
    for word in metric_type.split("/"):
        safe_word = _UNSAFE_CHARS.sub("_", word.strip()).strip("_")
        if safe_word:
            words.append(safe_word)
    return "_".join(words)


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty name parts with underscores"""
    if not name:
        return ""
    return "_".join(part for part in (namespace, subsystem, name) if part)


def project_resource(project_id: str) -> str:
    return f"projects/{project_id}"
