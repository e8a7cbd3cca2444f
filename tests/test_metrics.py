import pytest
from botocore.exceptions import ClientError

from email_lead_parser.utils.exceptions import ErrorCode, MetricsError
from email_lead_parser.utils.metrics import (
    LeadParserMetrics,
    MetricsCollector,
    flush_metrics,
    get_lead_parser_metrics,
    get_metrics_collector,
    initialize_metrics,
    reset_metrics
)


class FakeCloudWatch:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def put_metric_data(self, **kwargs):
        if self.error:
            raise self.error
        self.calls.append(kwargs)


def test_flush_sends_buffered_metrics():
    client = FakeCloudWatch()
    collector = MetricsCollector(namespace='Leads', client=client)

    collector.increment_counter('LeadsParsed', dimensions={'Parser': 'generic'})
    collector.record_gauge('CompletenessScore', 73.0)
    collector.flush()

    assert collector.pending == []
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call['Namespace'] == 'Leads'
    assert [m['MetricName'] for m in call['MetricData']] == ['LeadsParsed', 'CompletenessScore']
    assert call['MetricData'][0]['Dimensions'] == [{'Name': 'Parser', 'Value': 'generic'}]
    assert 'Dimensions' not in call['MetricData'][1]


def test_flush_of_empty_buffer_sends_nothing():
    client = FakeCloudWatch()

    MetricsCollector(client=client).flush()

    assert client.calls == []


def test_buffer_flushes_when_full():
    client = FakeCloudWatch()
    collector = MetricsCollector(batch_size=2, client=client)

    collector.increment_counter('MessagesClassified')
    collector.increment_counter('MessagesClassified')

    assert len(client.calls) == 1
    assert collector.pending == []


def test_rejected_batch_raises_metrics_error():
    error = ClientError({'Error': {'Code': 'Throttling', 'Message': 'Rate exceeded'}}, 'PutMetricData')
    collector = MetricsCollector(client=FakeCloudWatch(error=error))
    collector.increment_counter('LeadsParsed')

    with pytest.raises(MetricsError) as excinfo:
        collector.flush()

    assert excinfo.value.error_code == ErrorCode.METRICS_PUBLISH_FAILED
    assert collector.pending == []


def test_timer_records_milliseconds():
    collector = MetricsCollector(client=FakeCloudWatch())

    with collector.timer('ParseDuration', dimensions={'Parser': 'assurlead'}):
        pass

    metric = collector.pending[0]
    assert metric.name == 'ParseDuration'
    assert metric.unit == 'Milliseconds'
    assert metric.value >= 0
    assert metric.dimensions == {'Parser': 'assurlead'}


def test_lead_parser_metrics_dimensions():
    collector = MetricsCollector(client=FakeCloudWatch())
    metrics = LeadParserMetrics(collector)

    metrics.record_classification('generic', True)
    metrics.record_parse('generic', False)
    metrics.record_validation('generic', 'partial', 73)

    classified, parsed, validated, score = collector.pending
    assert classified.dimensions == {'Detector': 'generic', 'IsLead': 'true'}
    assert parsed.dimensions == {'Parser': 'generic', 'Status': 'failure'}
    assert validated.dimensions == {'Parser': 'generic', 'Status': 'partial'}
    assert (score.name, score.value, score.unit) == ('CompletenessScore', 73.0, 'None')


def test_global_metrics_lifecycle():
    client = FakeCloudWatch()

    metrics = initialize_metrics(namespace='Leads', client=client)

    assert get_lead_parser_metrics() is metrics
    assert get_metrics_collector() is metrics.collector

    metrics.record_no_parser()
    flush_metrics()
    assert client.calls[0]['MetricData'][0]['MetricName'] == 'NoSuitableParser'

    reset_metrics()
    assert get_lead_parser_metrics() is None
    assert get_metrics_collector() is None
    flush_metrics()
