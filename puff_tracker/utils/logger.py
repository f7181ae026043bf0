import logging
import logging.config
from typing import Optional

from puff_tracker.config import TrackerConfig, config

def configure_logging(tracker_config: Optional[TrackerConfig] = None) -> logging.Logger:
    """Apply the dictConfig built from the configuration"""
    tracker_config = tracker_config or config
    if tracker_config.log_to_file:
        tracker_config.log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(tracker_config.get_logging_config())
    return logging.getLogger("puff_tracker")
