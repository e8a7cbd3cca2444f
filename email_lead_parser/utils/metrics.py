"""
CloudWatch metrics for the lead parsing pipeline.
"""
import time
from datetime import datetime, timezone
from typing import Dict, Optional, List
from contextlib import contextmanager
from dataclasses import dataclass, field
import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .logger import get_logger
from .exceptions import MetricsError

logger = get_logger(__name__)


DEFAULT_NAMESPACE = "EmailLeadParser"
DEFAULT_REGION = "eu-west-3"


@dataclass
class MetricData:
    """Container for metric data."""
    name: str
    value: float
    unit: str = "Count"
    dimensions: Dict[str, str] = field(default_factory=dict)
    timestamp: Optional[datetime] = None


class MetricsCollector:
    """
    CloudWatch metrics collector with batching and error handling.
    """

    def __init__(
        self,
        namespace: str = DEFAULT_NAMESPACE,
        region_name: str = DEFAULT_REGION,
        batch_size: int = 20,
        client=None
    ):
        self.namespace = namespace
        self.batch_size = batch_size
        self._metrics_buffer: List[MetricData] = []

        if client is not None:
            self.cloudwatch = client
            return

        try:
            self.cloudwatch = boto3.client('cloudwatch', region_name=region_name)
        except (BotoCoreError, ClientError) as e:
            logger.warning(
                "Failed to initialize CloudWatch client, metrics will be logged only",
                error_message=str(e)
            )
            self.cloudwatch = None

    @property
    def pending(self) -> List[MetricData]:
        return list(self._metrics_buffer)

    def put_metric(
        self,
        name: str,
        value: float,
        unit: str = "Count",
        dimensions: Optional[Dict[str, str]] = None,
        timestamp: Optional[datetime] = None
    ):
        """
        Add a metric to the buffer for batch sending.

        Args:
            name: Metric name
            value: Metric value
            unit: Metric unit (Count, Milliseconds, None, ...)
            dimensions: Metric dimensions for filtering
            timestamp: Metric timestamp (defaults to now)
        """
        metric = MetricData(
            name=name,
            value=value,
            unit=unit,
            dimensions=dimensions or {},
            timestamp=timestamp or datetime.now(timezone.utc)
        )

        self._metrics_buffer.append(metric)

        logger.debug(
            f"Metric recorded: {name}",
            metric_name=name,
            metric_value=value,
            metric_unit=unit,
            metric_dimensions=dimensions
        )

        if len(self._metrics_buffer) >= self.batch_size:
            self.flush()

    def flush(self):
        """
        Send all buffered metrics to CloudWatch.

        Raises:
            MetricsError: If CloudWatch rejects the batch
        """
        if not self._metrics_buffer:
            return

        if not self.cloudwatch:
            logger.warning(
                f"CloudWatch client not available, discarding {len(self._metrics_buffer)} metrics"
            )
            self._metrics_buffer.clear()
            return

        try:
            metric_data = []
            for metric in self._metrics_buffer:
                data = {
                    'MetricName': metric.name,
                    'Value': metric.value,
                    'Unit': metric.unit,
                    'Timestamp': metric.timestamp
                }

                if metric.dimensions:
                    data['Dimensions'] = [
                        {'Name': k, 'Value': v}
                        for k, v in metric.dimensions.items()
                    ]

                metric_data.append(data)

            self.cloudwatch.put_metric_data(
                Namespace=self.namespace,
                MetricData=metric_data
            )

            logger.debug(
                f"Successfully sent {len(metric_data)} metrics to CloudWatch",
                namespace=self.namespace,
                metric_count=len(metric_data)
            )

        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to send metrics to CloudWatch",
                error=e,
                namespace=self.namespace,
                metric_count=len(self._metrics_buffer)
            )
            raise MetricsError(
                message=f"Failed to send metrics: {e}",
                namespace=self.namespace,
                cause=e
            )
        finally:
            self._metrics_buffer.clear()

    @contextmanager
    def timer(
        self,
        metric_name: str,
        dimensions: Optional[Dict[str, str]] = None
    ):
        """
        Context manager for timing operations.

        Args:
            metric_name: Name of the timing metric
            dimensions: Additional dimensions for the metric
        """
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = (time.perf_counter() - start_time) * 1000
            self.put_metric(
                name=metric_name,
                value=duration,
                unit="Milliseconds",
                dimensions=dimensions
            )

    def increment_counter(
        self,
        metric_name: str,
        value: int = 1,
        dimensions: Optional[Dict[str, str]] = None
    ):
        """
        Increment a counter metric.

        Args:
            metric_name: Name of the counter metric
            value: Value to increment by (default: 1)
            dimensions: Additional dimensions for the metric
        """
        self.put_metric(
            name=metric_name,
            value=float(value),
            unit="Count",
            dimensions=dimensions
        )

    def record_gauge(
        self,
        metric_name: str,
        value: float,
        unit: str = "None",
        dimensions: Optional[Dict[str, str]] = None
    ):
        """Record a point-in-time value."""
        self.put_metric(
            name=metric_name,
            value=value,
            unit=unit,
            dimensions=dimensions
        )


class LeadParserMetrics:
    """
    High-level metrics interface for the classification, parsing and
    validation stages.
    """

    def __init__(self, collector: MetricsCollector):
        self.collector = collector

    def record_classification(self, detector: str, is_lead: bool):
        self.collector.increment_counter(
            "MessagesClassified",
            dimensions={
                "Detector": detector,
                "IsLead": "true" if is_lead else "false"
            }
        )

    def record_parse(self, parser_name: str, success: bool):
        """Record the outcome of a parse attempt."""
        self.collector.increment_counter(
            "LeadsParsed",
            dimensions={
                "Parser": parser_name,
                "Status": "success" if success else "failure"
            }
        )

    def record_no_parser(self):
        self.collector.increment_counter("NoSuitableParser")

    def record_validation(self, parser_name: str, status: str, score: int):
        """Record the completeness verdict and score of a parsed lead."""
        self.collector.increment_counter(
            "LeadsValidated",
            dimensions={"Parser": parser_name, "Status": status}
        )
        self.collector.record_gauge(
            "CompletenessScore",
            value=float(score),
            dimensions={"Parser": parser_name}
        )

    def record_processing_time(self, duration_ms: float):
        self.collector.put_metric(
            "ProcessingDuration",
            value=duration_ms,
            unit="Milliseconds"
        )


# Global metrics instance
_metrics_collector: Optional[MetricsCollector] = None
_lead_parser_metrics: Optional[LeadParserMetrics] = None


def initialize_metrics(
    namespace: str = DEFAULT_NAMESPACE,
    region_name: str = DEFAULT_REGION,
    client=None
) -> LeadParserMetrics:
    """Initialize the global metrics collector."""
    global _metrics_collector, _lead_parser_metrics

    _metrics_collector = MetricsCollector(
        namespace=namespace,
        region_name=region_name,
        client=client
    )
    _lead_parser_metrics = LeadParserMetrics(_metrics_collector)
    return _lead_parser_metrics


def get_metrics_collector() -> Optional[MetricsCollector]:
    """Get the global metrics collector."""
    return _metrics_collector


def get_lead_parser_metrics() -> Optional[LeadParserMetrics]:
    """Get the lead parser metrics interface."""
    return _lead_parser_metrics


def reset_metrics():
    """Drop the global collector without flushing."""
    global _metrics_collector, _lead_parser_metrics
    _metrics_collector = None
    _lead_parser_metrics = None


def flush_metrics():
    """Flush all pending metrics."""
    if _metrics_collector:
        _metrics_collector.flush()
