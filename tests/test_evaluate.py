import json
import os
import tempfile
import unittest

import numpy as np
from sklearn.metrics import f1_score

from ids_compare.features.columns_nsl_kdd import LABELS
from ids_compare.models import evaluate
from ids_compare.utils.errors import UnknownLabel


class TestScore(unittest.TestCase):
    def test_perfect_predictions(self):
        actual = ["normal", "DoS", "Probe", "R2L", "U2R", "DoS"]
        self.assertEqual(evaluate.score(actual, actual), 100.0)

    def test_no_correct_predictions(self):
        actual = ["normal", "DoS", "Probe", "R2L", "U2R"]
        predicted = ["DoS", "Probe", "R2L", "U2R", "normal"]
        self.assertEqual(evaluate.score(predicted, actual), 0.0)

    def test_matches_sklearn_weighted_f1(self):
        rng = np.random.default_rng(0)
        actual = rng.choice(LABELS, size=500, p=[0.4, 0.2, 0.15, 0.05, 0.2])
        predicted = np.where(rng.random(500) < 0.7, actual, rng.choice(LABELS, size=500))
        expected = 100.0 * f1_score(actual, predicted, labels=list(LABELS), average="weighted", zero_division=0)
        self.assertAlmostEqual(evaluate.score(predicted, actual), expected, places=10)

    def test_class_never_predicted_or_present(self):
        actual = ["normal", "normal", "DoS", "U2R"]
        predicted = ["normal", "normal", "DoS", "normal"]
        per_class = evaluate.per_class_scores(evaluate.confusion(predicted, actual))
        self.assertEqual(per_class.loc["U2R", "precision"], 0.0)
        self.assertEqual(per_class.loc["U2R", "f1"], 0.0)
        self.assertEqual(per_class.loc["Probe", "support"], 0)
        self.assertEqual(per_class.loc["Probe", "f1"], 0.0)
        # normal: p = 2/3, r = 1 -> f1 = 0.8; DoS f1 = 1; U2R f1 = 0
        self.assertAlmostEqual(evaluate.score(predicted, actual), 100.0 * (2 * 0.8 + 1.0) / 4)

    def test_confusion_is_5x5_in_label_order(self):
        cm = evaluate.confusion(["DoS", "normal"], ["DoS", "Probe"])
        self.assertEqual(cm.shape, (5, 5))
        self.assertEqual(list(cm.index), list(LABELS))
        self.assertEqual(cm.loc["DoS", "DoS"], 1)
        self.assertEqual(cm.loc["Probe", "normal"], 1)
        self.assertEqual(int(cm.to_numpy().sum()), 2)

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            evaluate.score(["DoS"], ["DoS", "normal"])

    def test_empty(self):
        with self.assertRaises(ValueError):
            evaluate.score([], [])

    def test_label_outside_space(self):
        with self.assertRaises(UnknownLabel):
            evaluate.score(["neptune"], ["DoS"])


class TestReport(unittest.TestCase):
    def test_evaluate_and_write(self):
        actual = ["normal", "DoS", "DoS", "R2L"]
        predicted = ["normal", "DoS", "normal", "R2L"]
        report = evaluate.evaluate(predicted, actual, model="rf")
        self.assertEqual(report.accuracy, 75.0)
        self.assertAlmostEqual(report.weighted_f1, evaluate.score(predicted, actual))
        with tempfile.TemporaryDirectory() as tmp:
            path = evaluate.write_report(report, tmp, predicted=predicted, actual=actual)
            with open(path, encoding="utf-8") as f:
                metrics = json.load(f)
            self.assertEqual(metrics["model"], "rf")
            self.assertEqual(metrics["n_examples"], 4)
            for name in ("cm_rf.csv", "per_class_rf.csv", "report_rf.txt"):
                self.assertTrue(os.path.exists(os.path.join(tmp, name)))


if __name__ == '__main__':
    unittest.main()
