"""Unit tests for the Prometheus metrics registry."""

from prometheus_client import CollectorRegistry

from pollstats.services.metrics import PollMetrics


class TestPollMetrics:
    """Tests for PollMetrics."""

    def test_record_submission(self, metrics):
        metrics.record_submission("success")
        metrics.record_submission("success")
        metrics.record_submission("duplicate")

        assert metrics.sample("poll_submissions_total", {"status": "success"}) == 2
        assert metrics.sample("poll_submissions_total", {"status": "duplicate"}) == 1
        assert metrics.sample("poll_submissions_total", {"status": "error"}) == 0

    def test_record_interaction_defaults_question(self, metrics):
        metrics.record_interaction("click", None)
        metrics.record_interaction("click", "interest")

        assert metrics.sample(
            "poll_interactions_total", {"type": "click", "question": "unknown"}
        ) == 1
        assert metrics.sample(
            "poll_interactions_total", {"type": "click", "question": "interest"}
        ) == 1

    def test_observe_request(self, metrics):
        metrics.observe_request("POST", "/api/poll/submit", 201, 0.05)

        assert metrics.sample(
            "http_requests_total",
            {"method": "POST", "route": "/api/poll/submit", "status": "201"},
        ) == 1
        assert metrics.sample(
            "http_request_duration_seconds_count",
            {"method": "POST", "route": "/api/poll/submit"},
        ) == 1

    def test_render_exposition_format(self, metrics):
        metrics.record_submission("success")

        body = metrics.render().decode()

        assert "# TYPE poll_submissions_total counter" in body
        assert 'poll_submissions_total{status="success"} 1.0' in body
        assert "http_request_duration_seconds" in body

    def test_registries_are_isolated(self):
        first = PollMetrics(CollectorRegistry(), default_collectors=False)
        second = PollMetrics(CollectorRegistry(), default_collectors=False)

        first.record_submission("success")

        assert second.sample("poll_submissions_total", {"status": "success"}) == 0

    def test_default_collectors_registered(self):
        metrics = PollMetrics()

        assert "python_gc_objects_collected_total" in metrics.render().decode()
