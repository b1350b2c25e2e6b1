"""Unit tests for poll request schemas."""

import pytest
from pydantic import ValidationError

from pollstats.schemas.poll import (
    InteractionBatchRequest,
    InteractionRequest,
    PollSubmission,
    coerce_price,
    normalize_list,
)


class TestCoercePrice:
    """Tests for price coercion."""

    @pytest.mark.parametrize("raw,expected", [
        (25, 25),
        ("25", 25),
        (" 30 ", 30),
        (20.0, 20),
        ("15.0", 15),
        (0, 0),
    ])
    def test_accepts_whole_numbers(self, raw, expected):
        """Test integers, integral floats and numeric strings are accepted."""
        assert coerce_price(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_empty_values_become_none(self, raw):
        """Test missing prices are stored as NULL."""
        assert coerce_price(raw) is None

    @pytest.mark.parametrize("raw", ["abc", "25abc", 12.5, "12.5", True, [25], float("nan")])
    def test_rejects_non_integers(self, raw):
        """Test non-numeric or fractional prices are rejected."""
        with pytest.raises(ValueError, match="price_willing must be an integer"):
            coerce_price(raw)


class TestNormalizeList:
    """Tests for multi-choice normalization."""

    def test_none_becomes_empty_list(self):
        assert normalize_list(None) == []

    def test_scalar_becomes_single_element_list(self):
        assert normalize_list("travel") == ["travel"]

    def test_list_is_kept(self):
        assert normalize_list(["travel", "business"]) == ["travel", "business"]

    def test_empty_entries_dropped(self):
        """Test empty strings and None are dropped like a falsy filter."""
        assert normalize_list(["travel", "", None]) == ["travel"]
        assert normalize_list("") == []


class TestPollSubmission:
    """Tests for the submission schema."""

    def test_parses_client_field_names(self, sample_submission):
        """Test hyphenated and camelCase aliases map to model fields."""
        submission = PollSubmission.model_validate(sample_submission)

        assert submission.session_id == "s1"
        assert submission.use_cases == ["travel", "business"]
        assert submission.pain_point == "language-barrier"
        assert submission.time_to_complete == 45300
        assert submission.interaction_count == 17
        assert submission.user_agent == "Mozilla/5.0"
        assert submission.viewport == {"width": 1280, "height": 720}

    def test_minimal_payload(self):
        """Test every field is optional."""
        submission = PollSubmission.model_validate({})

        assert submission.session_id is None
        assert submission.use_cases == []
        assert submission.features == []
        assert submission.price_willing is None

    def test_scalar_use_case_normalized(self):
        submission = PollSubmission.model_validate({"use-cases": "travel", "features": "voice"})

        assert submission.use_cases == ["travel"]
        assert submission.features == ["voice"]

    def test_string_price_coerced(self):
        submission = PollSubmission.model_validate({"price_willing": "25"})
        assert submission.price_willing == 25

    def test_invalid_price_rejected(self):
        """Test a non-numeric price is a validation error, not a silent zero."""
        with pytest.raises(ValidationError) as exc_info:
            PollSubmission.model_validate({"price_willing": "lots"})

        assert "price_willing" in str(exc_info.value)

    def test_blank_session_id_treated_as_missing(self):
        submission = PollSubmission.model_validate({"sessionId": "  "})
        assert submission.session_id is None

    def test_boolean_notify_stored_as_text(self):
        submission = PollSubmission.model_validate({"notify": True})
        assert submission.notify == "true"

    @pytest.mark.parametrize(
        "field, value",
        [
            ("sessionId", "s" * 256),
            ("interest", "i" * 51),
            ("frequency", "f" * 51),
            ("pain-point", "p" * 101),
            ("notify", "subscribe-me"),
            ("email", "e" * 250 + "@b.com"),
        ],
    )
    def test_rejects_values_longer_than_column(self, field, value):
        """Test text that would not fit its column is a validation error."""
        with pytest.raises(ValidationError):
            PollSubmission.model_validate({field: value})

    def test_accepts_values_at_column_limit(self):
        submission = PollSubmission.model_validate({
            "sessionId": "s" * 255,
            "interest": "i" * 50,
            "notify": "n" * 10,
        })

        assert len(submission.session_id) == 255
        assert submission.notify == "n" * 10

    @pytest.mark.parametrize(
        "field, value",
        [
            ("price_willing", 2**31),
            ("price_willing", "3000000000"),
            ("timeToComplete", -1),
            ("interactionCount", 2**31),
        ],
    )
    def test_rejects_integers_outside_column_range(self, field, value):
        with pytest.raises(ValidationError):
            PollSubmission.model_validate({field: value})


class TestInteractionRequests:
    """Tests for interaction schemas."""

    def test_single_interaction(self, sample_interaction):
        event = InteractionRequest.model_validate(sample_interaction)

        assert event.session_id == "s1"
        assert event.type == "click"
        assert event.time_on_page == 3200

    def test_session_id_required(self, sample_interaction):
        del sample_interaction["sessionId"]

        with pytest.raises(ValidationError):
            InteractionRequest.model_validate(sample_interaction)

    def test_type_required(self, sample_interaction):
        del sample_interaction["type"]

        with pytest.raises(ValidationError):
            InteractionRequest.model_validate(sample_interaction)

    def test_numeric_value_stored_as_text(self, sample_interaction):
        sample_interaction["value"] = 25
        event = InteractionRequest.model_validate(sample_interaction)
        assert event.value == "25"

    def test_batch_keeps_order(self):
        batch = InteractionBatchRequest.model_validate({
            "sessionId": "s1",
            "interactions": [
                {"type": "focus", "timestamp": 1},
                {"type": "click", "timestamp": 2},
                {"type": "change", "timestamp": 3},
            ],
        })

        assert [event.type for event in batch.interactions] == ["focus", "click", "change"]

    def test_batch_rejects_malformed_item(self):
        """Test one bad event invalidates the whole batch."""
        with pytest.raises(ValidationError):
            InteractionBatchRequest.model_validate({
                "sessionId": "s1",
                "interactions": [{"type": "click"}, {"element": "no-type"}],
            })

    def test_rejects_long_element(self, sample_interaction):
        sample_interaction["element"] = "x" * 120

        with pytest.raises(ValidationError):
            InteractionRequest.model_validate(sample_interaction)

    def test_rejects_long_session_id(self, sample_interaction):
        sample_interaction["sessionId"] = "s" * 256

        with pytest.raises(ValidationError):
            InteractionRequest.model_validate(sample_interaction)

    @pytest.mark.parametrize("field, value", [("timestamp", 2**63), ("timeOnPage", 2**31), ("timestamp", -5)])
    def test_rejects_integers_outside_column_range(self, sample_interaction, field, value):
        sample_interaction[field] = value

        with pytest.raises(ValidationError):
            InteractionRequest.model_validate(sample_interaction)

    def test_batch_rejects_long_element(self):
        with pytest.raises(ValidationError):
            InteractionBatchRequest.model_validate({
                "sessionId": "s1",
                "interactions": [{"type": "click"}, {"type": "click", "element": "x" * 120}],
            })
