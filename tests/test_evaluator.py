"""
hypercollection unit tests for the collection query evaluator
"""

import itertools
import unittest
from typing import Any, List

from hypercollection.collection import InvalidParameter, NullOrdering, evaluate, evaluate_window
from hypercollection.collection.evaluator import query_string_link
from hypercollection.schemas import CollectionParameters, Details, Envelope

from . import utils


def _ids(envelope: Envelope) -> List[Any]:
    return list(envelope.items)


class _Item:
    def __init__(self, id: int, rank: Any):  # noqa
        self.id = id
        self.rank = rank
        self._hidden = "secret"


class EvaluatorTests(unittest.TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.users = utils.sample_users()
        self.expected_by_name = [u.id for u in sorted(self.users, key=lambda u: u.name)]

    def test_envelope_keys(self):
        envelope = evaluate(self.users, {})
        self.assertEqual(
            {"items", "sort", "reverse", "limit", "offset", "previous", "next", "total", "details"},
            set(envelope.model_dump().keys())
        )
        data = envelope.model_dump(mode="json")
        self.assertIsNone(data["sort"])
        self.assertIsNone(data["limit"])
        self.assertIsNone(data["previous"])
        self.assertIsNone(data["next"])
        self.assertEqual("minimal", data["details"])
        self.assertFalse(data["reverse"])

    def test_total_independent_of_paging(self):
        for limit, offset in itertools.product([None, 0, 1, 7, 50, 500], [0, 1, 13, 199, 200, 250]):
            params = CollectionParameters(limit=limit, offset=offset)
            envelope = evaluate(self.users, params)
            self.assertEqual(len(self.users), envelope.total, (limit, offset))
            remaining = max(0, len(self.users) - offset)
            if limit is None:
                self.assertEqual(remaining, len(envelope.items), (limit, offset))
            else:
                self.assertEqual(min(limit, remaining), len(envelope.items), (limit, offset))

    def test_deterministic_results(self):
        params = {"sort": "name", "limit": "20", "offset": "40"}
        first = evaluate(self.users, params)
        for _ in range(5):
            self.assertEqual(first, evaluate(list(self.users), params))

    def test_stable_sort_for_ties(self):
        envelope = evaluate(self.users, {"sort": "name"})
        self.assertEqual(self.expected_by_name, _ids(envelope))
        by_id = {u.id: u for u in self.users}
        for previous, current in zip(envelope.items, envelope.items[1:]):
            if by_id[previous].name == by_id[current].name:
                self.assertLess(previous, current)

    def test_paging_completeness(self):
        for limit in (1, 3, 10, 25, 199, 200, 1000):
            for reverse in (False, True):
                collected = []
                query = {"sort": "name", "limit": str(limit), "reverse": str(reverse).lower()}
                pages = 0
                while True:
                    envelope = evaluate(self.users, query)
                    collected.extend(envelope.items)
                    pages += 1
                    if envelope.next is None:
                        break
                    query = utils.query_of(envelope.next)
                expected = self.expected_by_name[::-1] if reverse else self.expected_by_name
                self.assertEqual(expected, collected, (limit, reverse))
                self.assertEqual(max(1, -(-len(self.users) // limit)), pages)

    def test_zero_limit(self):
        envelope = evaluate(self.users, {"limit": "0"})
        self.assertEqual([], envelope.items)
        self.assertEqual(len(self.users), envelope.total)
        self.assertEqual(0, envelope.limit)
        self.assertIsNone(envelope.previous)
        self.assertIsNotNone(envelope.next)
        self.assertEqual("0", utils.query_of(envelope.next)["offset"])

        envelope = evaluate([], {"limit": "0"})
        self.assertEqual([], envelope.items)
        self.assertEqual(0, envelope.total)
        self.assertIsNone(envelope.next)

    def test_offset_beyond_total(self):
        for offset in (200, 201, 1000):
            envelope = evaluate(self.users, CollectionParameters(offset=offset, limit=10))
            self.assertEqual([], envelope.items)
            self.assertEqual(offset, envelope.offset)
            self.assertIsNone(envelope.next)
            self.assertIsNotNone(envelope.previous)
            self.assertEqual(str(offset - 10), utils.query_of(envelope.previous)["offset"])

        envelope = evaluate([], CollectionParameters(offset=0, limit=10))
        self.assertEqual([], envelope.items)
        self.assertIsNone(envelope.previous)
        self.assertIsNone(envelope.next)

    def test_previous_without_limit(self):
        envelope = evaluate(self.users, {"offset": "42"})
        self.assertEqual(len(self.users) - 42, len(envelope.items))
        self.assertIsNone(envelope.next)
        query = utils.query_of(envelope.previous)
        self.assertEqual("0", query["offset"])
        self.assertNotIn("limit", query)

    def test_previous_clamped_at_zero(self):
        envelope = evaluate(self.users, {"offset": "5", "limit": "10"})
        self.assertEqual("0", utils.query_of(envelope.previous)["offset"])
        self.assertEqual("15", utils.query_of(envelope.next)["offset"])

    def test_reverse_symmetry(self):
        for sort in (None, "name", "age", "created"):
            forward = evaluate(self.users, CollectionParameters(sort=sort))
            backward = evaluate(self.users, CollectionParameters(sort=sort, reverse=True))
            self.assertEqual(forward.items[::-1], backward.items, sort)
            self.assertEqual(forward.total, backward.total)

    def test_reverse_symmetry_of_pages(self):
        total = len(self.users)
        for sort in (None, "name", "age"):
            for limit, offset in [(10, 50), (7, 0), (25, 190), (30, 180)]:
                backward = evaluate(self.users, CollectionParameters(sort=sort, reverse=True, limit=limit, offset=offset))
                start = max(0, total - offset - limit)
                mirrored = evaluate(
                    self.users,
                    CollectionParameters(sort=sort, limit=total - offset - start, offset=start)
                )
                self.assertEqual(mirrored.items[::-1], backward.items, (sort, limit, offset))
                self.assertEqual(total, backward.total)

    def test_reverse_without_sort(self):
        envelope = evaluate(self.users, {"reverse": "TRUE", "limit": "3"})
        self.assertEqual([200, 199, 198], envelope.items)

    def test_example_two_hundred_users(self):
        envelope = evaluate(self.users, {"sort": "name", "reverse": "true", "limit": "10", "offset": "50"})
        self.assertEqual(10, len(envelope.items))
        self.assertEqual(200, envelope.total)
        self.assertIsNotNone(envelope.previous)
        self.assertIsNotNone(envelope.next)
        self.assertEqual(self.expected_by_name[::-1][50:60], envelope.items)

        previous = utils.query_of(envelope.previous)
        self.assertEqual(
            {"offset": "40", "limit": "10", "sort": "name", "reverse": "true", "details": "minimal"},
            previous
        )
        self.assertEqual("60", utils.query_of(envelope.next)["offset"])

    def test_example_fifty_users(self):
        users = utils.sample_users(50)
        envelope = evaluate(users, {"limit": "25", "offset": "25"})
        self.assertEqual(25, len(envelope.items))
        self.assertEqual(50, envelope.total)
        self.assertIsNone(envelope.next)
        self.assertIsNotNone(envelope.previous)
        self.assertEqual(list(range(26, 51)), envelope.items)

    def test_case_insensitive_sort(self):
        expected = evaluate(self.users, {"sort": "name"})
        for sort in ("NAME", "Name", "nAmE"):
            envelope = evaluate(self.users, {"SORT": sort, "Details": "MINIMAL"})
            self.assertEqual("name", envelope.sort)
            self.assertEqual(expected.items, envelope.items)

    def test_unknown_sort_attribute(self):
        with self.assertRaises(InvalidParameter) as cm:
            evaluate(self.users, {"sort": "balance"})
        self.assertEqual("sort", cm.exception.parameter)
        self.assertEqual("balance", cm.exception.value)

        with self.assertRaises(InvalidParameter):
            evaluate([], {"sort": "balance"}, attributes=["id", "name"])
        envelope = evaluate([], {"sort": "NAME"}, attributes=["id", "name"])
        self.assertEqual("name", envelope.sort)
        envelope = evaluate([], {"sort": "anything"})
        self.assertEqual("anything", envelope.sort)
        self.assertEqual(0, envelope.total)

    def test_ambiguous_sort_attribute(self):
        resources = [{"id": 1, "name": "a", "Name": "b"}]
        self.assertEqual("name", evaluate(resources, {"sort": "name"}).sort)
        self.assertEqual("Name", evaluate(resources, {"sort": "Name"}).sort)
        with self.assertRaises(InvalidParameter):
            evaluate(resources, {"sort": "NAME"})

    def test_null_ordering(self):
        missing = [u.id for u in self.users if u.age is None]
        present = [u.id for u in sorted((u for u in self.users if u.age is not None), key=lambda u: u.age)]

        envelope = evaluate(self.users, {"sort": "age"})
        self.assertEqual(present + missing, envelope.items)
        envelope = evaluate(self.users, {"sort": "age", "reverse": "true"})
        self.assertEqual((present + missing)[::-1], envelope.items)
        self.assertEqual(missing[::-1], envelope.items[:len(missing)])

        envelope = evaluate(self.users, {"sort": "age"}, nulls=NullOrdering.FIRST)
        self.assertEqual(missing + present, envelope.items)

        with self.assertRaises(InvalidParameter):
            evaluate(self.users, {"sort": "age"}, nulls=NullOrdering.REJECT)
        complete = [u for u in self.users if u.age is not None]
        envelope = evaluate(complete, {"sort": "age"}, nulls=NullOrdering.REJECT)
        self.assertEqual(present, envelope.items)

    def test_missing_attribute_is_null(self):
        resources = [{"id": 1, "rank": 3}, {"id": 2}, {"id": 3, "rank": 1}, {"id": 4, "rank": None}]
        self.assertEqual([3, 1, 2, 4], evaluate(resources, {"sort": "rank"}).items)
        self.assertEqual([2, 4, 3, 1], evaluate(resources, {"sort": "rank"}, nulls=NullOrdering.FIRST).items)

    def test_incomparable_values(self):
        resources = [{"id": 1, "rank": 3}, {"id": 2, "rank": "three"}]
        with self.assertRaises(InvalidParameter):
            evaluate(resources, {"sort": "rank"})

    def test_details(self):
        envelope = evaluate(self.users, {"limit": "2", "details": "ALL"})
        self.assertEqual(Details.ALL, envelope.details)
        self.assertEqual([self.users[0].model_dump(), self.users[1].model_dump()], envelope.items)

        envelope = evaluate(self.users, {"limit": "2", "details": "minimal"})
        self.assertEqual([1, 2], envelope.items)

        envelope = evaluate(
            self.users,
            {"limit": "2"},
            reference=lambda u: f"/users/{u.id}",
            render=lambda u: u.name
        )
        self.assertEqual(["/users/1", "/users/2"], envelope.items)
        envelope = evaluate(self.users, {"limit": "1", "details": "all"}, render=lambda u: u.name)
        self.assertEqual([self.users[0].name], envelope.items)

        with self.assertRaises(InvalidParameter):
            evaluate(self.users, {"details": "full"})

    def test_resource_shapes(self):
        objects = [_Item(1, 5), _Item(2, 3), _Item(3, 4)]
        envelope = evaluate(objects, {"sort": "RANK", "details": "all"})
        self.assertEqual("rank", envelope.sort)
        self.assertEqual([{"id": 2, "rank": 3}, {"id": 3, "rank": 4}, {"id": 1, "rank": 5}], envelope.items)
        with self.assertRaises(InvalidParameter):
            evaluate(objects, {"sort": "_hidden"})

        mappings = [{"key": "b"}, {"key": "a"}]
        envelope = evaluate(mappings, {"sort": "key"}, key="key")
        self.assertEqual(["a", "b"], envelope.items)
        with self.assertRaises(ValueError):
            evaluate(mappings, {})

    def test_custom_links(self):
        envelope = evaluate(
            self.users,
            CollectionParameters(limit=10, offset=10),
            links=lambda page: f"/users/{page.offset}"
        )
        self.assertEqual("/users/0", envelope.previous)
        self.assertEqual("/users/20", envelope.next)

    def test_query_string_link(self):
        envelope = evaluate(self.users, CollectionParameters(limit=5, offset=5, details=Details.ALL))
        self.assertTrue(envelope.next.startswith("?"))
        self.assertEqual(
            {"offset": "10", "limit": "5", "reverse": "false", "details": "all"},
            utils.query_of(envelope.next)
        )

    def test_invalid_parameters(self):
        for query in [
            {"limit": "-1"},
            {"offset": "-5"},
            {"limit": "ten"},
            {"reverse": "maybe"},
            {"details": "everything"},
            {"page": "2"}
        ]:
            with self.assertRaises(InvalidParameter, msg=query):
                evaluate(self.users, query)

        with self.assertRaises(InvalidParameter):
            evaluate(self.users, CollectionParameters.model_construct(limit=-1, offset=0, details=Details.ALL))
        with self.assertRaises(InvalidParameter):
            evaluate(self.users, CollectionParameters.model_construct(limit=None, offset=-1, details=Details.ALL))

    def test_lazy_collection(self):
        envelope = evaluate((u for u in self.users), {"limit": "5", "offset": "195"})
        self.assertEqual([196, 197, 198, 199, 200], envelope.items)
        self.assertEqual(200, envelope.total)


class WindowEvaluatorTests(unittest.TestCase):
    def test_window_metadata(self):
        window = [{"id": i} for i in range(51, 61)]
        envelope = evaluate_window(window, 200, {"limit": "10", "offset": "50", "sort": "name"})
        self.assertEqual(list(range(51, 61)), envelope.items)
        self.assertEqual(200, envelope.total)
        self.assertEqual("name", envelope.sort)
        self.assertEqual("40", utils.query_of(envelope.previous)["offset"])
        self.assertEqual("60", utils.query_of(envelope.next)["offset"])

    def test_window_sort_override(self):
        envelope = evaluate_window([], 0, {"sort": "NAME"}, sort="name")
        self.assertEqual("name", envelope.sort)

    def test_window_consumed_lazily(self):
        source = itertools.count()
        window = ({"id": i} for i in source)
        envelope = evaluate_window(window, 10 ** 9, CollectionParameters(limit=3))
        self.assertEqual([0, 1, 2], envelope.items)
        self.assertEqual(3, next(source))

    def test_window_last_page(self):
        envelope = evaluate_window([{"id": 49}, {"id": 50}], 50, {"limit": "25", "offset": "48"})
        self.assertEqual([49, 50], envelope.items)
        self.assertIsNone(envelope.next)
        self.assertEqual("23", utils.query_of(envelope.previous)["offset"])

    def test_window_without_limit(self):
        envelope = evaluate_window([{"id": 1}, {"id": 2}], 5, {"offset": "1"})
        self.assertEqual("3", utils.query_of(envelope.next)["offset"])
        self.assertEqual("0", utils.query_of(envelope.previous)["offset"])

    def test_window_inconsistencies(self):
        with self.assertRaises(ValueError):
            evaluate_window([], -1, {})
        with self.assertRaises(ValueError):
            evaluate_window([{"id": 1}, {"id": 2}], 1, {})
        with self.assertRaises(ValueError):
            evaluate_window([{"id": 1}], 5, {"offset": "5"})
        with self.assertRaises(InvalidParameter):
            evaluate_window([], 0, {"offset": "-1"})

    def test_query_string_link_function(self):
        envelope = evaluate_window([], 0, {}, links=query_string_link)
        self.assertIsNone(envelope.previous)
        self.assertIsNone(envelope.next)
