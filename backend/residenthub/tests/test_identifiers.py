from __future__ import annotations

import re
import uuid

from residenthub.utils import identifiers


def test_uuid7_is_version_7_and_time_ordered():
    first = identifiers.generate_uuid7()
    second = identifiers.generate_uuid7()

    assert uuid.UUID(first).version == 7
    assert first[:8] <= second[:8]


def test_random_society_code_format():
    for _ in range(50):
        assert re.fullmatch(r"RH-\d{4}", identifiers.random_society_code())


def test_generate_society_code_skips_taken_codes():
    candidates = iter(["RH-1111", "RH-2222", "RH-3333"])
    taken = {"RH-1111", "RH-2222"}

    code = identifiers.generate_society_code(lambda c: c in taken, candidate=lambda: next(candidates))

    assert code == "RH-3333"


def test_generate_society_code_falls_back_after_max_attempts():
    calls = []

    def always_taken(code):
        calls.append(code)
        return True

    code = identifiers.generate_society_code(always_taken, max_attempts=5)

    assert len(calls) == 5
    assert re.fullmatch(r"RH-\d{6}", code)


def test_fallback_code_uses_last_six_timestamp_digits():
    assert identifiers.fallback_society_code(now_ms=1767225600123) == "RH-600123"
