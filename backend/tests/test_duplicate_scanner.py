"""
Tests for the Duplicate Scanner.

1. Adjacent identical submissions: the earlier one is selected
2. A single differing byte in the first photo: no duplicate
3. Missing first photo: never selected
4. Three in a row: two deletions, the last survives
5. Only the first photo slot is compared
6. Repository ordering and production/deleted filtering
"""
import pytest
from unittest.mock import MagicMock

from bairro.services.cleanup import DuplicateScanner, find_duplicates
from bairro.services.errors import RepositoryUnavailable


JPEG = b"\xff\xd8\xff\xe0same-photo-content\xff\xd9"


# =============================================================================
# TEST: DUPLICATE PREDICATE
# =============================================================================

class TestFindDuplicates:
    """Pairwise detection over an ordered list."""

    def test_identical_pair_selects_earlier(self, photo_store, write_photo, make_record):
        """The earlier entry of a duplicate pair is the one deleted."""
        write_photo("a.jpg", JPEG)
        write_photo("b.jpg", JPEG)
        first = make_record("row-1", photos=("a.jpg",))
        second = make_record("row-2", photos=("b.jpg",))

        assert find_duplicates([first, second], photo_store) == [first]

    def test_one_byte_difference_is_not_duplicate(self, photo_store, write_photo, make_record):
        """Same metadata but first photos differ in one byte."""
        write_photo("a.jpg", JPEG)
        write_photo("b.jpg", JPEG[:-1] + b"\x00")
        records = [
            make_record("row-1", photos=("a.jpg",)),
            make_record("row-2", photos=("b.jpg",)),
        ]

        assert find_duplicates(records, photo_store) == []

    def test_same_size_different_content_is_not_duplicate(self, photo_store, write_photo, make_record):
        write_photo("a.jpg", b"aaaa")
        write_photo("b.jpg", b"aaab")
        records = [
            make_record("row-1", photos=("a.jpg",)),
            make_record("row-2", photos=("b.jpg",)),
        ]

        assert find_duplicates(records, photo_store) == []

    @pytest.mark.parametrize("missing", ["a.jpg", "b.jpg"])
    def test_missing_first_photo_is_never_selected(self, photo_store, write_photo, make_record, missing):
        """A missing file means no evidence, whichever side it is on."""
        for name in ("a.jpg", "b.jpg"):
            if name != missing:
                write_photo(name, JPEG)
        records = [
            make_record("row-1", photos=("a.jpg",)),
            make_record("row-2", photos=("b.jpg",)),
        ]

        assert find_duplicates(records, photo_store) == []

    def test_empty_first_slot_is_not_duplicate(self, photo_store, write_photo, make_record):
        write_photo("x.jpg", JPEG)
        records = [
            make_record("row-1", photos=(None, "x.jpg")),
            make_record("row-2", photos=(None, "x.jpg")),
        ]

        assert find_duplicates(records, photo_store) == []

    def test_three_in_a_row_yields_first_two(self, photo_store, write_photo, make_record):
        """A, B, C identical: A and B deleted, C stays live."""
        for name in ("a.jpg", "b.jpg", "c.jpg"):
            write_photo(name, JPEG)
        a = make_record("row-a", photos=("a.jpg",))
        b = make_record("row-b", photos=("b.jpg",))
        c = make_record("row-c", photos=("c.jpg",))

        duplicates = find_duplicates([a, b, c], photo_store)

        assert duplicates == [a, b]
        assert c not in duplicates

    def test_last_of_a_chain_is_never_selected(self, photo_store, write_photo, make_record):
        records = []
        for i in range(5):
            name = write_photo(f"p{i}.jpg", JPEG)
            records.append(make_record(f"row-{i}", photos=(name,)))

        duplicates = find_duplicates(records, photo_store)

        assert [r.row_id for r in duplicates] == ["row-0", "row-1", "row-2", "row-3"]

    def test_only_adjacent_pairs_are_compared(self, photo_store, write_photo, make_record):
        """A different entry between two identical ones breaks the pair."""
        write_photo("a.jpg", JPEG)
        write_photo("x.jpg", b"other")
        write_photo("b.jpg", JPEG)
        records = [
            make_record("row-1", photos=("a.jpg",)),
            make_record("row-2", photos=("x.jpg",), anomaly_code="B7"),
            make_record("row-3", photos=("b.jpg",)),
        ]

        assert find_duplicates(records, photo_store) == []

    @pytest.mark.parametrize("field,value", [
        ("submitted_time", "10:31"),
        ("parish", "Penha de França"),
        ("device_id", "device-b"),
        ("anomaly_code", "B7"),
    ])
    def test_any_metadata_difference_is_not_duplicate(
        self, photo_store, write_photo, make_record, field, value
    ):
        write_photo("a.jpg", JPEG)
        write_photo("b.jpg", JPEG)
        records = [
            make_record("row-1", photos=("a.jpg",)),
            make_record("row-2", photos=("b.jpg",), **{field: value}),
        ]

        assert find_duplicates(records, photo_store) == []

    def test_only_first_photo_slot_is_compared(self, photo_store, write_photo, make_record):
        """Differences in slots 2-4 do not prevent a match."""
        write_photo("a1.jpg", JPEG)
        write_photo("b1.jpg", JPEG)
        write_photo("a2.jpg", b"left")
        write_photo("b2.jpg", b"right")
        first = make_record("row-1", photos=("a1.jpg", "a2.jpg"))
        second = make_record("row-2", photos=("b1.jpg", "b2.jpg", "b3.jpg"))

        assert find_duplicates([first, second], photo_store) == [first]

    def test_empty_and_single_inputs(self, photo_store, make_record):
        assert find_duplicates([], photo_store) == []
        assert find_duplicates([make_record("row-1")], photo_store) == []


# =============================================================================
# TEST: SCANNER
# =============================================================================

class TestDuplicateScanner:
    """Scanner over the repository."""

    def test_scan_passes_include_deleted(self, photo_store):
        repository = MagicMock()
        repository.fetch_production_ordered_by_device_and_time.return_value = []

        DuplicateScanner(repository, photo_store, include_deleted=False).scan()

        repository.fetch_production_ordered_by_device_and_time.assert_called_once_with(
            include_deleted=False,
        )

    def test_fetch_failure_propagates(self, photo_store):
        """No partial result when the fetch fails."""
        repository = MagicMock()
        repository.fetch_production_ordered_by_device_and_time.side_effect = RepositoryUnavailable("down")

        with pytest.raises(RepositoryUnavailable):
            DuplicateScanner(repository, photo_store).scan()

    def test_scan_groups_by_device_and_time(self, repository, photo_store, write_photo, add_occurrence):
        """Rows inserted out of order still pair up by device and time."""
        write_photo("a1.jpg", JPEG)
        write_photo("a2.jpg", JPEG)
        write_photo("b1.jpg", JPEG)

        first = add_occurrence(device_id="device-a", photo1="a1.jpg")
        add_occurrence(device_id="device-b", photo1="b1.jpg")
        add_occurrence(device_id="device-a", photo1="a2.jpg")

        duplicates = DuplicateScanner(repository, photo_store).scan()

        assert [r.row_id for r in duplicates] == [first]

    def test_debug_submissions_are_ignored(self, repository, photo_store, write_photo, add_occurrence):
        write_photo("a1.jpg", JPEG)
        write_photo("a2.jpg", JPEG)
        add_occurrence(photo1="a1.jpg", is_production=False)
        add_occurrence(photo1="a2.jpg", is_production=False)

        assert DuplicateScanner(repository, photo_store).scan() == []

    def test_deleted_entries_scanned_by_default(self, repository, photo_store, write_photo, add_occurrence):
        write_photo("a1.jpg", JPEG)
        write_photo("a2.jpg", JPEG)
        first = add_occurrence(photo1="a1.jpg", deleted_by_user=True)
        add_occurrence(photo1="a2.jpg")

        assert [r.row_id for r in DuplicateScanner(repository, photo_store).scan()] == [first]

    def test_deleted_entries_excluded_when_configured(
        self, repository, photo_store, write_photo, add_occurrence
    ):
        write_photo("a1.jpg", JPEG)
        write_photo("a2.jpg", JPEG)
        add_occurrence(photo1="a1.jpg", deleted_by_user=True)
        add_occurrence(photo1="a2.jpg")

        scanner = DuplicateScanner(repository, photo_store, include_deleted=False)

        assert scanner.scan() == []
