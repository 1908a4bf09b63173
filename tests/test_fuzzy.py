from __future__ import annotations

import unittest

from lazybranch.fuzzy import DefaultFuzzyRanker, fuzzy_score, query_score, substring_index


class FuzzyBehaviorTests(unittest.TestCase):
    def test_fuzzy_score_requires_in_order_subsequence(self) -> None:
        self.assertIsNotNone(fuzzy_score("fb", "feature/bar"))
        self.assertIsNone(fuzzy_score("bf", "feature/bar"))

    def test_fuzzy_score_prefers_segment_starts(self) -> None:
        boundary = fuzzy_score("fb", "feature/bar")
        buried = fuzzy_score("fb", "xfxxxxxbxx")
        self.assertGreater(boundary, buried)

    def test_substring_index_is_case_insensitive_by_default(self) -> None:
        self.assertEqual(substring_index("MAIN", "origin/main"), 7)
        self.assertIsNone(substring_index("MAIN", "origin/main", case_sensitive=True))

    def test_query_score_uses_smart_case(self) -> None:
        self.assertIsNotNone(query_score("rel", "Release"))
        self.assertIsNone(query_score("Rel", "release"))

    def test_every_query_atom_must_match(self) -> None:
        self.assertIsNotNone(query_score("feat foo", "feature/foo"))
        self.assertIsNone(query_score("feat bar", "feature/foo"))

    def test_ranker_orders_substring_hits_before_scattered_hits(self) -> None:
        ranker = DefaultFuzzyRanker()

        ranked = ranker.rank("dev", ["d-e-v-x", "develop", "main", "dev"])

        self.assertEqual(ranked, ["dev", "develop", "d-e-v-x"])

    def test_empty_query_keeps_all_names(self) -> None:
        ranker = DefaultFuzzyRanker()

        self.assertEqual(sorted(ranker.rank("", ["b", "a"])), ["a", "b"])


if __name__ == "__main__":
    unittest.main()
