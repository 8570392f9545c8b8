# Shared infrastructure: events, logging, results, configuration
from .event_broker import EventBroker, EventPriority, event_aware
from .logger import Logger, LogLevel, logger, logged, log_aware
from .results import CalibrationError, Outcome
from .config import DetectionConfig, CalibrationConfig, ConfigParser

__all__ = [
    'EventBroker',
    'EventPriority',
    'event_aware',
    'Logger',
    'LogLevel',
    'logger',
    'logged',
    'log_aware',
    'CalibrationError',
    'Outcome',
    'DetectionConfig',
    'CalibrationConfig',
    'ConfigParser',
]
