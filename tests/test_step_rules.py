import pytest

from domain.value_objects import EligibilityNotMet, Invalid, InvalidFormat, MissingField, Valid
from services.eligibility.rules import (
    eligibility_gate_failures,
    is_valid_region_code,
    validate_step,
)


class TestRegionCode:
    @pytest.mark.parametrize("z", ["48001", "49971", "48201", "49000", " 48201 "])
    def test_in_range(self, z):
        assert is_valid_region_code(z)

    @pytest.mark.parametrize("z", ["48000", "49972", "10001", "00000", "99999"])
    def test_out_of_range(self, z):
        assert not is_valid_region_code(z)

    @pytest.mark.parametrize("z", ["", "abcde", "48a01", "-48001", "48001.0", "4 8001", "４８２０１"])
    def test_non_numeric_rejected(self, z):
        assert not is_valid_region_code(z)

    def test_non_string_rejected(self):
        assert not is_valid_region_code(None)
        assert not is_valid_region_code(48201)

    @pytest.mark.parametrize("z", ["048201", "0048001", "00049971", "4820", "482011"])
    def test_only_five_digit_codes(self, z):
        assert not is_valid_region_code(z)

    def test_padded_zip_not_stored(self, payloads):
        result = validate_step(2, {**payloads[2], "zip_code": "048201"})
        assert not result.ok
        assert [e.field for e in result.errors] == ["zip_code"]


class TestAddressStep:
    def test_valid_address_forces_region(self, payloads):
        result = validate_step(2, payloads[2])
        assert isinstance(result, Valid)
        assert result.data.state == "MI"
        assert result.data.zip_code == "48201"

    def test_missing_fields_are_reported_individually(self):
        result = validate_step(2, {"street_address": "", "city": "  "})
        assert isinstance(result, Invalid)
        assert set(result.errors) == {
            MissingField("street_address"),
            MissingField("city"),
            MissingField("zip_code"),
        }

    def test_out_of_state_zip(self, payloads):
        body = {**payloads[2], "zip_code": "60601"}
        result = validate_step(2, body)
        assert not result.ok
        assert [type(e) for e in result.errors] == [InvalidFormat]
        assert result.errors[0].field == "zip_code"


class TestEligibilityStep:
    def test_all_yes_on_gates_passes(self, payloads):
        result = validate_step(4, payloads[4])
        assert result.ok
        assert result.data.is_state_resident is True

    @pytest.mark.parametrize(
        "full_time,resident,failing",
        [
            (False, True, "is_full_time_student"),
            (True, False, "is_state_resident"),
        ],
    )
    def test_single_failing_gate(self, payloads, full_time, resident, failing):
        body = {**payloads[4], "is_full_time_student": full_time, "is_state_resident": resident}
        result = validate_step(4, body)
        assert not result.ok
        assert len(result.errors) == 1
        assert isinstance(result.errors[0], EligibilityNotMet)
        assert result.errors[0].field == failing

    def test_both_gates_failing(self, payloads):
        body = {**payloads[4], "is_full_time_student": False, "is_state_resident": False}
        result = validate_step(4, body)
        assert {e.field for e in result.errors} == {"is_full_time_student", "is_state_resident"}

    def test_informational_answers_never_block(self, payloads):
        body = {**payloads[4], "is_first_time_applying": False, "is_previous_recipient": True}
        assert validate_step(4, body).ok

    def test_informational_answers_still_required(self, payloads):
        body = dict(payloads[4])
        del body["is_previous_recipient"]
        result = validate_step(4, body)
        assert result.errors == (MissingField("is_previous_recipient"),)

    def test_form_strings_accepted(self):
        body = {
            "is_first_time_applying": "true",
            "is_previous_recipient": "false",
            "is_full_time_student": "true",
            "is_state_resident": "true",
        }
        assert validate_step(4, body).ok

    def test_garbage_answer(self, payloads):
        body = {**payloads[4], "is_state_resident": "maybe"}
        result = validate_step(4, body)
        assert result.errors == (InvalidFormat("is_state_resident", "must be yes or no"),)


class TestOtherSteps:
    def test_personal_phone_format(self, payloads):
        result = validate_step(1, {**payloads[1], "phone": "313-555-0142"})
        assert [e.field for e in result.errors] == ["phone"]

    def test_personal_bad_date(self, payloads):
        result = validate_step(1, {**payloads[1], "date_of_birth": "03/14/2005"})
        assert [e.field for e in result.errors] == ["date_of_birth"]

    def test_education_low_gpa_is_eligibility_failure(self, payloads):
        result = validate_step(3, {**payloads[3], "gpa": "2.9"})
        assert result.errors == (EligibilityNotMet("gpa", "a minimum GPA of 3.0 is required"),)

    @pytest.mark.parametrize("gpa", ["4.5", "-1", "abc"])
    def test_education_gpa_out_of_scale(self, payloads, gpa):
        result = validate_step(3, {**payloads[3], "gpa": gpa})
        assert [type(e) for e in result.errors] == [InvalidFormat]

    def test_education_optional_scores(self, payloads):
        body = {**payloads[3], "act_score": "40"}
        result = validate_step(3, body)
        assert [e.field for e in result.errors] == ["act_score"]

    def test_documents_word_count(self, payloads):
        from conftest import essay

        ok = validate_step(5, payloads[5])
        assert ok.ok and ok.data.essay_word_count == 500
        short = validate_step(5, {**payloads[5], "essay_text": essay(100)})
        assert [e.field for e in short.errors] == ["essay_text"]

    def test_recommenders_need_two_distinct_people(self, payloads):
        recs = payloads[6]["recommenders"]
        dup = {"recommenders": [recs[0], dict(recs[0])]}
        result = validate_step(6, dup)
        assert not result.ok
        assert "recommenders[1].email" in {e.field for e in result.errors}

    def test_recommenders_count(self, payloads):
        result = validate_step(6, {"recommenders": payloads[6]["recommenders"][:1]})
        assert [e.field for e in result.errors] == ["recommenders"]

    def test_review_requires_all_certifications(self, payloads):
        result = validate_step(7, {**payloads[7], "certify_publish": False})
        assert result.errors == (MissingField("certify_publish"),)

    def test_unknown_step(self):
        with pytest.raises(ValueError):
            validate_step(8, {})


def test_gate_failures_from_stored_answers(payloads):
    from domain.models import EligibilityAnswers

    answers = EligibilityAnswers(**{**payloads[4], "is_state_resident": False})
    assert [e.field for e in eligibility_gate_failures(answers)] == ["is_state_resident"]
    assert eligibility_gate_failures(None)[0].field == "eligibility"
