"""
Unit tests for src/modules/verification_extractor.py

PATTERN RECOGNITION: Extraction is tiered. Subject matches beat body
matches, and a tight keyword window beats a loose one. The false-positive
filter (years, postal codes, street numbers) runs on every candidate.
"""

import re
import unittest

import pytest

from src.modules.verification_extractor import (
    STREET_NUMBER_PATTERN,
    VerificationCodeExtractor,
    clean_digits,
    extract_verification_code,
    is_likely_non_code,
    strip_html,
)


class TestExtraction:
    @pytest.mark.parametrize("subject,text,expected", [
        ("", "Your verification code is 482913.", "482913"),
        ("", "Your code is 123-456", "123456"),
        ("", "Your PIN is 4821", "4821"),
        ("", "Use OTP: 1234 5678 to sign in", "12345678"),
        ("", "482913 is your login code", "482913"),
        ("", "Security code : 12·34·56", "123456"),
        ("", "您的验证码是 839201，5分钟内有效", "839201"),
        ("", "認証コード: 551204", "551204"),
        ("", "인증코드 [907311]", "907311"),
    ])
    def test_body_codes(self, subject, text, expected):
        assert extract_verification_code(subject, text, "") == expected

    def test_subject_code(self):
        assert extract_verification_code("Your login code 731904", "", "") == "731904"

    def test_subject_code_with_separator(self):
        code = extract_verification_code("Your verification code is 123-456", "", "")
        assert code == "123456"

    def test_subject_beats_body(self):
        code = extract_verification_code(
            "Confirm with 111222", "Your verification code is 999888", ""
        )
        assert code == "111222"

    def test_keyword_first_direction_tried_first(self):
        text = (
            "Order 55667788 was placed and your account security team is reviewing it. "
            "Code: 246810"
        )
        assert extract_verification_code("", text, "") == "246810"

    def test_loose_window_used_as_fallback(self):
        filler = "x" * 50
        text = f"Your verification {filler} 770011"
        assert extract_verification_code("", text, "") == "770011"

    def test_beyond_loose_window_is_not_matched(self):
        filler = "x" * 100
        assert extract_verification_code("", f"code {filler} 770011", "") is None

    def test_html_used_when_text_empty(self):
        html = "<html><style>.c{color:red}</style><p>Your code&nbsp;is <b>58&#51;201</b></p></html>"
        assert extract_verification_code("", "", html) == "583201"

    def test_text_preferred_over_html(self):
        code = extract_verification_code("", "Your code is 101010", "<p>Your code is 202020</p>")
        assert code == "101010"

    @pytest.mark.parametrize("text", [
        "Copyright 2024 Example Corp",
        "your code is 2037",
        "Thanks for signing up!",
        "Order total: 4,99 EUR",
        "Call 555 now",
        "Verification code is 123",
        "Your code is 123456789",
        "",
    ])
    def test_no_code(self, text):
        assert extract_verification_code("", text, "") is None

    def test_year_rejected_even_next_to_keyword(self):
        assert extract_verification_code("Security update 2025", "", "") is None

    def test_five_digits_near_street_rejected(self):
        assert extract_verification_code("", "Your code: 12345 Main Street", "") is None

    def test_five_digits_near_zip_rejected(self):
        assert extract_verification_code("", "Confirm your zip 90210", "") is None

    def test_street_number_rejected(self):
        text = "Login from 1600 Amphitheatre Road, Mountain View"
        assert extract_verification_code("", text, "") is None

    def test_digits_inside_longer_number_are_not_matched(self):
        assert extract_verification_code("", "code 1234567890123", "") is None


class TestStripHtml(unittest.TestCase):
    def test_tags_become_spaces(self):
        self.assertEqual(strip_html("<p>a</p><p>b</p>"), "a b")

    def test_script_and_style_dropped(self):
        html = "<script>var code = 999999;</script><style>p{}</style>text"
        self.assertEqual(strip_html(html), "text")

    def test_entities(self):
        self.assertEqual(strip_html("a&amp;b &lt;c&gt; &quot;d&quot; &#39;e&#x27;"), "a&b <c> \"d\" 'e'")

    def test_unknown_named_entity_becomes_space(self):
        self.assertEqual(strip_html("one&hellip;two"), "one two")

    def test_invalid_numeric_entity_becomes_space(self):
        self.assertEqual(strip_html("a&#xD800;b&#9999999;c"), "a b c")

    def test_empty(self):
        self.assertEqual(strip_html(""), "")


class TestFilters(unittest.TestCase):
    def test_clean_digits(self):
        self.assertEqual(clean_digits("12 34-56–78.9"), "123456789")

    def test_year(self):
        self.assertTrue(is_likely_non_code("2024", ""))
        self.assertFalse(is_likely_non_code("1999", ""))
        self.assertFalse(is_likely_non_code("2100", ""))

    def test_postal_needs_context(self):
        self.assertTrue(is_likely_non_code("90210", "ship to zip 90210"))
        self.assertFalse(is_likely_non_code("90210", "your code 90210"))

    def test_street_number(self):
        self.assertTrue(is_likely_non_code("221", "lives at 221 Baker Street"))
        self.assertFalse(is_likely_non_code("221", "lives at 221 baker street"))

    def test_street_number_must_be_the_whole_number(self):
        self.assertFalse(is_likely_non_code("221", "lives at 1221 Baker Street"))
        self.assertFalse(is_likely_non_code("221", "code 221, or 445 Baker Street"))
        self.assertTrue(is_likely_non_code("445", "code 221, or 445 Baker Street"))

    def test_street_pattern_is_case_sensitive(self):
        self.assertEqual(STREET_NUMBER_PATTERN.flags & re.IGNORECASE, 0)
        self.assertEqual(STREET_NUMBER_PATTERN.search("at 12 Elm Road").group(1), "12")

    def test_plain_code(self):
        self.assertFalse(is_likely_non_code("482913", "Your code is 482913"))


class TestExtractorInstance(unittest.TestCase):
    def test_tiers_are_ordered(self):
        tiers = VerificationCodeExtractor.TIERS
        self.assertEqual([(t.scope, t.window) for t in tiers],
                         [("subject", 20), ("body", 30), ("body", 80)])

    def test_logs_found_scope_without_code(self):
        extractor = VerificationCodeExtractor()
        with self.assertLogs("VerificationCodeExtractor", level="DEBUG") as logs:
            self.assertEqual(extractor.extract("", "Your code is 482913", ""), "482913")
        self.assertIn("found in body", logs.output[0])
        self.assertNotIn("482913", "".join(logs.output))


if __name__ == "__main__":
    unittest.main()
