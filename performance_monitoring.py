"""
Performance monitoring utilities.
Times long-running operations such as imports and exports.
"""

import time
import functools
import threading
from datetime import datetime
from typing import Dict, List, Any, Callable, Optional

from error_handling import AppLogger


class PerformanceTimer:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, logger: Optional[AppLogger] = None):
        self.operation_name = operation_name
        self.logger = logger
        self.start_time = None
        self.end_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        duration = self.end_time - self.start_time

        if self.logger:
            self.logger.info(f"Operation '{self.operation_name}' completed in {duration:.3f} seconds")

        PerformanceTracker.instance().add_timing(self.operation_name, duration)

    @property
    def duration(self) -> float:
        """Get the duration of the operation."""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return 0.0


def performance_monitor(operation_name: str = None):
    """Decorator to monitor function performance."""
    def decorator(func: Callable) -> Callable:
        name = operation_name or f"{func.__module__}.{func.__name__}"

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with PerformanceTimer(name):
                return func(*args, **kwargs)
        return wrapper
    return decorator


class PerformanceTracker:
    """Singleton collecting timings across the application."""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        # Prevent re-initialization
        if hasattr(self, 'timings'):
            return

        self.timings: Dict[str, List[float]] = {}
        self.slow_operations: List[Dict[str, Any]] = []
        self.slow_threshold = 2.0  # seconds
        self.logger: Optional[AppLogger] = None

    @classmethod
    def instance(cls):
        """Get the singleton instance."""
        return cls()

    def add_timing(self, operation: str, duration: float):
        """Add a timing measurement."""
        self.timings.setdefault(operation, []).append(duration)

        if duration > self.slow_threshold:
            self.slow_operations.append({
                'operation': operation,
                'duration': duration,
                'timestamp': datetime.now()
            })
            # Keep only recent slow operations
            self.slow_operations = self.slow_operations[-100:]
            if self.logger:
                self.logger.warning(f"Slow operation '{operation}' took {duration:.3f} seconds")

    def get_stats(self, operation: str) -> Dict[str, Any]:
        """Get statistics for a specific operation."""
        timings = self.timings.get(operation)
        if not timings:
            return {}

        return {
            'operation': operation,
            'count': len(timings),
            'total_time': sum(timings),
            'average_time': sum(timings) / len(timings),
            'min_time': min(timings),
            'max_time': max(timings),
            'last_execution': timings[-1]
        }

    def get_performance_report(self) -> str:
        """Generate a formatted performance report."""
        operations = [self.get_stats(name) for name in self.timings]
        operations.sort(key=lambda x: x.get('average_time', 0), reverse=True)

        report = ["=== Performance Report ===",
                  f"Total Operations: {sum(op['count'] for op in operations)}",
                  f"Slow Operations: {len(self.slow_operations)}",
                  ""]
        for i, op in enumerate(operations[:10], 1):
            report.append(f"{i:2d}. {op['operation']}: {op['average_time']:.3f}s avg "
                          f"({op['count']} executions)")
        return "\n".join(report)
