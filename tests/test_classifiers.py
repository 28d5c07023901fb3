import os
import tempfile
import unittest

import numpy as np
import pandas as pd

from ids_compare.features.labels import normalize
from ids_compare.models import classifiers
from ids_compare.models.classifiers import LDAModel, RandomForestModel
from ids_compare.models.evaluate import score
from ids_compare.utils.errors import SchemaMismatch


def _clusters(n=60, seed=0):
    rng = np.random.default_rng(seed)
    centers = {"normal": (0.0, 0.0), "DoS": (10.0, 0.0), "Probe": (0.0, 10.0)}
    frames, labels = [], []
    for label, (cx, cy) in centers.items():
        pts = rng.normal(size=(n, 2)) + [cx, cy]
        frames.append(pd.DataFrame(pts, columns=["PC1", "PC2"]))
        labels += [label] * n
    return pd.concat(frames, ignore_index=True), np.array(labels, dtype=object)


class TestTwoPointScenario(unittest.TestCase):
    def test_separable_points(self):
        X_tr = pd.DataFrame([[0.0, 0.0], [5.0, 5.0]], columns=["f1", "f2"])
        y_tr = [normalize("normal"), normalize("neptune")]
        X_te = pd.DataFrame([[5.0, 5.0]], columns=["f1", "f2"])
        y_te = [normalize("neptune.")]
        self.assertEqual(y_te, ["DoS"])

        model = classifiers.train("rf", X_tr, y_tr, n_estimators=101, random_state=42, n_jobs=1)
        pred = classifiers.predict(model, X_te)
        self.assertEqual(list(pred), ["DoS"])
        self.assertEqual(score(pred, y_te), 100.0)


class TestLDAModel(unittest.TestCase):
    def test_separates_gaussian_classes(self):
        X_tr, y_tr = _clusters()
        X_te, y_te = _clusters(seed=1)
        model = LDAModel().fit(X_tr, y_tr)
        pred = model.predict(X_te)
        self.assertGreater(np.mean(pred == y_te), 0.98)
        self.assertEqual(set(model.classes_), {"normal", "DoS", "Probe"})

    def test_posteriors_sum_to_one(self):
        X_tr, y_tr = _clusters()
        model = LDAModel().fit(X_tr, y_tr)
        proba = model.predict_proba(X_tr.iloc[:5])
        np.testing.assert_allclose(proba.sum(axis=1), 1.0)


class TestRandomForestModel(unittest.TestCase):
    def test_same_seed_same_predictions(self):
        X_tr, y_tr = _clusters()
        X_te, _ = _clusters(seed=2)
        a = RandomForestModel(n_estimators=25, random_state=7).fit(X_tr, y_tr)
        b = RandomForestModel(n_estimators=25, random_state=7).fit(X_tr, y_tr)
        np.testing.assert_array_equal(a.predict(X_te), b.predict(X_te))
        pd.testing.assert_series_equal(a.feature_importances(), b.feature_importances())

    def test_importances_scaled_to_max(self):
        rng = np.random.default_rng(3)
        X = pd.DataFrame({"noise": rng.normal(size=300), "signal": np.repeat([0.0, 5.0, 10.0], 100)})
        X["signal"] += rng.normal(scale=0.1, size=300)
        y = np.repeat(["normal", "DoS", "R2L"], 100)
        model = RandomForestModel(n_estimators=50, random_state=0).fit(X, y)
        imp = model.feature_importances()
        self.assertEqual(imp.index[0], "signal")
        self.assertEqual(imp.iloc[0], 1.0)
        self.assertTrue((imp <= 1.0).all())
        self.assertEqual(classifiers.select_features(imp, top_n=1), ["signal"])
        self.assertEqual(classifiers.select_features(imp, threshold=0.0), ["signal", "noise"])

    def test_select_features_empty(self):
        imp = pd.Series({"a": 1.0, "b": 0.2})
        with self.assertRaises(ValueError):
            classifiers.select_features(imp, threshold=2.0)


class TestTuneRandomForest(unittest.TestCase):
    def test_best_params_train_a_model(self):
        X_tr, y_tr = _clusters(n=30)
        grid = {"max_features": ["sqrt", 1.0], "min_samples_leaf": [1, 3], "max_depth": [None, 4]}
        tuned = classifiers.tune_random_forest(X_tr, y_tr, grid, n_estimators=10, cv_splits=3, random_state=0)
        self.assertEqual(set(tuned), set(grid))
        model = classifiers.train("rf", X_tr, y_tr, n_estimators=10, random_state=0, **tuned)
        self.assertEqual(model.model.max_depth, tuned["max_depth"])
        self.assertEqual(len(model.predict(X_tr)), len(y_tr))

    def test_grid_key_outside_constructor_is_rejected(self):
        X_tr, y_tr = _clusters(n=30)
        with self.assertRaises(ValueError):
            classifiers.tune_random_forest(X_tr, y_tr, {"criterion": ["gini", "entropy"]}, n_estimators=5)


class TestModelContract(unittest.TestCase):
    def test_column_order_must_match(self):
        X_tr, y_tr = _clusters()
        model = LDAModel().fit(X_tr, y_tr)
        with self.assertRaises(SchemaMismatch):
            model.predict(X_tr[["PC2", "PC1"]])
        with self.assertRaises(SchemaMismatch) as ctx:
            model.predict(X_tr[["PC1"]])
        self.assertEqual(ctx.exception.missing, ["PC2"])

    def test_predict_before_fit(self):
        X_tr, _ = _clusters()
        with self.assertRaises(RuntimeError):
            RandomForestModel().predict(X_tr)

    def test_unknown_model_name(self):
        X_tr, y_tr = _clusters()
        with self.assertRaises(ValueError):
            classifiers.train("svm", X_tr, y_tr)

    def test_save_and_load(self):
        X_tr, y_tr = _clusters()
        model = RandomForestModel(n_estimators=10, random_state=1).fit(X_tr, y_tr)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "rf.joblib")
            model.save_model(path)
            loaded = RandomForestModel.load_model(path)
            with self.assertRaises(TypeError):
                LDAModel.load_model(path)
        np.testing.assert_array_equal(loaded.predict(X_tr), model.predict(X_tr))
        self.assertEqual(loaded.feature_names, ["PC1", "PC2"])


if __name__ == '__main__':
    unittest.main()
