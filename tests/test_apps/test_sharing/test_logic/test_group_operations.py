"""Tests for the group repository."""

import copy
from datetime import UTC, datetime

import pytest

from server.apps.sharing.exceptions import GroupNotFoundError, MetadataStoreError
from server.apps.sharing.infrastructure.metadata_store import load_groups
from server.apps.sharing.logic import group_operations
from server.apps.sharing.logic.group_operations import (
    append_files,
    build_group,
    create_group,
    delete_group,
    get_all_groups,
    get_group,
)
from server.apps.sharing.models import Group


@pytest.fixture
def group(make_file) -> Group:
    """Stored group with files A(10) and B(20)."""
    return create_group(Group.create(
        name='Tugas',
        files=[make_file('A', 10), make_file('B', 20)],
        uploaded_at=datetime(2026, 10, 19, 8, 30, tzinfo=UTC),
        group_id='group-1',
    ))


def test_build_group_defaults_name(make_file, settings):
    """Test a blank name falls back to the placeholder."""
    settings.SHARING_DEFAULT_GROUP_NAME = 'Kelompok Tanpa Nama'

    assert build_group(None, []).name == 'Kelompok Tanpa Nama'
    assert build_group('   ', []).name == 'Kelompok Tanpa Nama'
    assert build_group(' Tugas ', []).name == 'Tugas'


def test_build_group_uses_given_id(make_file):
    """Test files stored under an id keep that id."""
    built = build_group('Tugas', [make_file('A', 1)], group_id='fixed')

    assert built.id == 'fixed'
    assert built.total_size == 1


def test_create_and_get(group):
    """Test created groups are retrievable by id."""
    assert get_group('group-1') == group
    assert get_group('unknown') is None
    assert get_all_groups() == [group]


def test_create_keeps_creation_order(group, make_file):
    """Test new groups are appended to the collection."""
    second = create_group(build_group('Kedua', [make_file('C', 1)]))

    assert [stored.id for stored in get_all_groups()] == ['group-1', second.id]


def test_append_preserves_order_and_totals(group, make_file):
    """Test appending C(5) to [A(10), B(20)] gives [A, B, C] and 35."""
    updated = append_files('group-1', [make_file('C', 5)])

    assert [file_record.name for file_record in updated.files] == ['A', 'B', 'C']
    assert updated.total_size == 35
    assert get_group('group-1') == updated
    assert updated.uploaded_at == group.uploaded_at
    assert updated.name == group.name


def test_append_allows_duplicate_names(group, make_file):
    """Test duplicate filenames are kept, not de-duplicated."""
    updated = append_files('group-1', [make_file('A', 1)])

    assert [file_record.name for file_record in updated.files] == ['A', 'B', 'A']
    assert updated.total_size == 31


def test_append_unknown_group(make_file):
    """Test appending to a missing group fails."""
    with pytest.raises(GroupNotFoundError):
        append_files('unknown', [make_file('A', 1)])


def test_total_size_invariant(group, make_file):
    """Test every stored group's total equals the sum of its files."""
    append_files('group-1', [make_file('C', 5), make_file('D', 7)])
    create_group(build_group('Kedua', [make_file('E', 3)]))

    for stored in get_all_groups():
        stored_group = get_group(stored.id)
        assert stored_group.total_size == sum(
            file_record.size for file_record in stored_group.files
        )


def test_delete_group(group):
    """Test deleted groups are gone."""
    assert delete_group('group-1') is True
    assert get_group('group-1') is None


def test_delete_unknown_group_succeeds():
    """Test deleting a missing group is a silent success."""
    assert delete_group('unknown') is True


def test_delete_leaves_other_groups(group, make_file):
    """Test deleting one group keeps the rest."""
    other = create_group(build_group('Kedua', [make_file('C', 1)]))

    delete_group('group-1')

    assert [stored.id for stored in get_all_groups()] == [other.id]


def test_create_fails_when_save_fails(monkeypatch, make_file):
    """Test a failed save is surfaced as a store error."""
    monkeypatch.setattr(group_operations, 'save_groups', lambda groups: False)

    with pytest.raises(MetadataStoreError):
        create_group(build_group('Tugas', [make_file('A', 1)]))


def test_writes_refuse_unreadable_store(group, monkeypatch, make_file):
    """Test a read failure never turns into a collection-wiping write."""
    def broken_load(*, strict=False):
        if strict:
            raise MetadataStoreError('Failed to read groups')
        return []

    monkeypatch.setattr(group_operations, 'load_groups', broken_load)

    with pytest.raises(MetadataStoreError):
        create_group(build_group('Kedua', [make_file('C', 1)]))

    monkeypatch.undo()
    assert load_groups() == [group]


def test_concurrent_appends_lose_an_update(group, monkeypatch, make_file):
    """Test the current, unhardened read-modify-write loses updates.

    Both writers read the same snapshot; the second save overwrites
    the first writer's append.
    """
    snapshot = load_groups()
    monkeypatch.setattr(
        group_operations,
        'load_groups',
        lambda *, strict=False: copy.deepcopy(snapshot),
    )

    append_files('group-1', [make_file('C', 5)])
    append_files('group-1', [make_file('D', 7)])

    monkeypatch.undo()
    survivor = get_group('group-1')
    assert [file_record.name for file_record in survivor.files] == ['A', 'B', 'D']
    assert survivor.total_size == 37
