"""Tests for configuration module"""
import os
import tempfile
from pathlib import Path
from unittest.mock import patch
import pytest
from pydantic import ValidationError

from config import Config
from metrics.models import LabelCollisionPolicy


class TestConfig:
    """Test configuration validation and parsing"""
    
    def test_default_config(self):
        """Test default configuration values"""
        config = Config(project_id="test-project")
        
        assert config.project_id == "test-project"
        assert config.metrics_type_prefix_list == ["compute.googleapis.com/instance/cpu"]
        assert config.metrics_interval == 300
        assert config.collection_interval == 60
        assert config.max_concurrent_requests == 16
        assert config.cancel_on_error is False
        assert config.label_collision_policy == LabelCollisionPolicy.PASSTHROUGH
        assert config.metrics_namespace == "stackdriver"
        assert config.metrics_subsystem == "monitoring"
        assert config.metrics_port == 9255
        assert config.prometheus_file is None
    
    def test_environment_override(self):
        """Test configuration override from environment variables"""
        env_vars = {
            "PROJECT_ID": "env-project",
            "METRICS_TYPE_PREFIXES": "compute.googleapis.com/, pubsub.googleapis.com/ ,",
            "METRICS_INTERVAL": "600",
            "COLLECTION_INTERVAL": "120",
            "MAX_CONCURRENT_REQUESTS": "4",
            "CANCEL_ON_ERROR": "true",
            "LABEL_COLLISION_POLICY": "rename",
            "ACCESS_TOKEN": "token",
            "LOG_LEVEL": "debug",
        }
        
        with patch.dict(os.environ, env_vars):
            config = Config()
            
            assert config.project_id == "env-project"
            assert config.metrics_type_prefix_list == ["compute.googleapis.com/", "pubsub.googleapis.com/"]
            assert config.metrics_interval == 600
            assert config.collection_interval == 120
            assert config.max_concurrent_requests == 4
            assert config.cancel_on_error is True
            assert config.label_collision_policy == LabelCollisionPolicy.RENAME
            assert config.access_token == "token"
            assert config.log_level == "DEBUG"
    
    def test_project_id_required(self):
        with patch.dict(os.environ, {"PROJECT_ID": "  "}):
            with pytest.raises(ValidationError):
                Config()
    
    def test_validation_intervals(self):
        with pytest.raises(ValidationError):
            Config(project_id="p", metrics_interval=0)
        with pytest.raises(ValidationError):
            Config(project_id="p", collection_interval=0)
    
    def test_validation_concurrency(self):
        with pytest.raises(ValidationError):
            Config(project_id="p", max_concurrent_requests=0)
    
    def test_validation_prefixes(self):
        with pytest.raises(ValidationError):
            Config(project_id="p", metrics_type_prefixes=" , ")
    
    def test_validation_metrics_port(self):
        with pytest.raises(ValidationError):
            Config(project_id="p", metrics_port=70000)
    
    def test_directory_creation(self):
        """Test that parent directories are created for file paths"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "logs" / "test.log"
            prometheus_file = Path(tmp_dir) / "metrics" / "test.prom"
            
            config = Config(project_id="p", log_file=log_file, prometheus_file=prometheus_file)
            
            assert config.log_file.parent.exists()
            assert config.prometheus_file.parent.exists()
