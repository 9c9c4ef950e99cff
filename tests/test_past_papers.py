import unittest
from datetime import date

from pydantic import ValidationError

from dseplannr.core.levels import CutoffRow, DseLevel
from dseplannr.core.past_papers import (
    AttemptPayload,
    build_attempt,
    calc_percentage,
    requires_manual_grade,
    sort_attempts,
    summarize_attempts,
)


STORE = {
    "MATH": {
        2023: [
            CutoffRow(DseLevel.L5_STAR_STAR, 90),
            CutoffRow(DseLevel.L5_STAR, 80),
            CutoffRow(DseLevel.L5, 70),
            CutoffRow(DseLevel.L4, 60),
        ]
    }
}


def payload(**overrides):
    values = {
        "subject_code": "math",
        "exam_year": 2023,
        "paper_label": " Paper 1 ",
        "attempt_date": date(2024, 3, 1),
        "score": 75,
        "total": 100,
    }
    values.update(overrides)
    return AttemptPayload(**values)


class PayloadTests(unittest.TestCase):
    def test_score_cannot_exceed_total(self):
        with self.assertRaises(ValidationError):
            payload(score=120)

    def test_total_must_be_positive(self):
        with self.assertRaises(ValidationError):
            payload(total=0)

    def test_strips_text(self):
        self.assertEqual(payload().paper_label, "Paper 1")


class AttemptTests(unittest.TestCase):
    def test_percentage(self):
        self.assertAlmostEqual(calc_percentage(47, 60), 78.33, places=2)
        with self.assertRaises(ValueError):
            calc_percentage(10, 0)

    def test_estimated_from_cutoffs(self):
        attempt = build_attempt(payload(), STORE, attempt_id="a1")
        self.assertEqual(attempt.id, "a1")
        self.assertEqual(attempt.subject_code, "MATH")
        self.assertEqual(attempt.percentage, 75)
        self.assertEqual(attempt.estimated_level, "5")
        self.assertIsNone(attempt.tag)

    def test_manual_grade_required_without_exact_year(self):
        self.assertTrue(requires_manual_grade(STORE, "MATH", 2022))
        self.assertTrue(requires_manual_grade(STORE, "MATH", 2023, is_dse=False))
        self.assertFalse(requires_manual_grade(STORE, "math", 2023))

        attempt = build_attempt(payload(exam_year=2022, manual_grade="4"), STORE)
        self.assertEqual(attempt.estimated_level, "4")
        with self.assertRaises(ValueError):
            build_attempt(payload(exam_year=2022), STORE)
        with self.assertRaises(ValueError):
            build_attempt(payload(is_dse=False, manual_grade="A"), STORE)


class SummaryTests(unittest.TestCase):
    def setUp(self):
        self.attempts = [
            build_attempt(payload(score=95, attempt_date=date(2024, 3, 3)), STORE),
            build_attempt(payload(score=65, attempt_date=date(2024, 3, 1)), STORE),
            build_attempt(payload(exam_year=2019, score=30, manual_grade="U", attempt_date=date(2024, 3, 2)), STORE),
        ]

    def test_summary(self):
        summary = summarize_attempts(self.attempts)
        self.assertAlmostEqual(summary.average_percentage, 63.33, places=2)
        self.assertEqual(summary.total_attempts, 3)
        self.assertEqual(summary.top_level, "5**")
        self.assertIsNone(summarize_attempts([]))

    def test_subject_filter(self):
        eng = build_attempt(payload(subject_code="eng", score=40, manual_grade="3", attempt_date=date(2024, 2, 1)), STORE)
        attempts = self.attempts + [eng]
        summary = summarize_attempts(attempts, subject_code=" Eng ")
        self.assertEqual(summary.total_attempts, 1)
        self.assertEqual(summary.average_percentage, 40)
        self.assertEqual(summarize_attempts(attempts, "MATH").total_attempts, 3)
        self.assertIsNone(summarize_attempts(attempts, "PHY"))
        self.assertEqual(sort_attempts(attempts, "date", subject_code="eng"), [eng])
        self.assertEqual(len(sort_attempts(attempts, "date")), 4)

    def test_sorting(self):
        by_date = sort_attempts(self.attempts, "date")
        self.assertEqual([a.score for a in by_date], [65, 30, 95])
        by_pct = sort_attempts(self.attempts, "percentage", descending=True)
        self.assertEqual([a.score for a in by_pct], [95, 65, 30])
        with self.assertRaises(ValueError):
            sort_attempts(self.attempts, "subject")


if __name__ == "__main__":
    unittest.main()
