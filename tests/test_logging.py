"""Tests for logging configuration"""
import tempfile
import os
import logging
from pathlib import Path
from unittest.mock import patch

from config import Config
from logging_config import (
    setup_structured_logging,
    get_logger,
    log_scrape_completed,
    log_server_startup,
    log_error
)


class TestLoggingConfig:
    """Test logging configuration and structured logging"""
    
    def test_setup_structured_logging(self):
        """Test structured logging setup"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "test.log"
            config = Config(project_id="p", log_file=log_file, log_level="DEBUG")
            
            setup_structured_logging(config)
            
            assert log_file.parent.exists()
            assert logging.getLogger("test").isEnabledFor(logging.DEBUG)

            # drop the file handler before the directory goes away
            setup_structured_logging(Config(project_id="p"))
    
    def test_get_logger(self):
        """Test getting structured logger"""
        logger = get_logger("test_logger")
        
        assert logger is not None
        assert hasattr(logger, 'info')
        assert hasattr(logger, 'error')
        assert hasattr(logger, 'debug')
        assert hasattr(logger, 'warning')
    
    def test_log_scrape_completed(self):
        """Test structured scrape logging"""
        logger = get_logger("test")
        
        # This should not raise an exception
        log_scrape_completed(logger, samples_count=10, duration=0.5, api_calls=3)
        log_scrape_completed(logger, samples_count=0, duration=1.2, api_calls=4, had_error=True)
    
    def test_log_server_startup(self):
        """Test structured server startup logging"""
        logger = get_logger("test")
        
        log_server_startup(logger, Config(project_id="p"))
    
    def test_log_error(self):
        """Test structured error logging"""
        logger = get_logger("test")
        error = ValueError("Test error")
        
        log_error(logger, error, {"component": "test", "prefix": "a.com/"})
        log_error(logger, error)
    
    def test_development_vs_production_logging(self):
        """Test different logging configurations for development vs production"""
        config = Config(project_id="p")
        
        with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
            setup_structured_logging(config)
            get_logger("test").info("Test development log")
        
        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            setup_structured_logging(config)
            get_logger("test").info("Test production log")
    
    def test_logger_context_binding(self):
        """Test logger context binding"""
        logger = get_logger("test")
        
        bound_logger = logger.bind(prefix="a.com/", project_id="p")
        bound_logger.info("Test message with context")
