"""
Guardian System Coordinator
Shared clock and cancellable timers for a monitoring session
"""

from .clock import CentralClock
from .scheduler import RecurringTask, OneShotTask, TaskScheduler

__all__ = [
    'CentralClock',
    'RecurringTask',
    'OneShotTask',
    'TaskScheduler',
]

__version__ = '1.0.0'
