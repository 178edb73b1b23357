"""viewkeeper - intercept and recover view-once chat media"""

__version__ = "0.1.0"
