import pytest

from calvision.constants import N_GROUPS, UINT_BITS, UINT_MAX, group_mask


def test_first_group_is_lowest_bit():
    assert group_mask(0) == 1


@pytest.mark.parametrize("group", range(N_GROUPS))
def test_masks_have_single_bit_at_group(group):
    mask = group_mask(group)
    assert bin(mask).count("1") == 1
    assert mask >> group == 1


def test_masks_are_distinct_and_disjoint():
    masks = [group_mask(g) for g in range(N_GROUPS)]
    assert len(set(masks)) == N_GROUPS
    combined = 0
    for mask in masks:
        assert combined & mask == 0
        combined |= mask


def test_highest_group_fits_in_word():
    assert group_mask(UINT_BITS - 1) <= UINT_MAX


@pytest.mark.parametrize("group", [-1, UINT_BITS])
def test_out_of_range_group_rejected(group):
    with pytest.raises(ValueError):
        group_mask(group)