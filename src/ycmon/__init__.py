"""
ycmon - Yandex Cloud Monitoring output for host metrics.

Publishes metrics to the Monitoring data/write API using an IAM token
obtained from the instance metadata service.
"""

__version__ = "1.0.0"
