"""Metric models, counters, sinks and exporters"""
