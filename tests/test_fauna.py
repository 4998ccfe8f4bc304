"""Tests for fauna placement."""

import numpy as np
import pytest

from py_terrain.core.fauna import FaunaPlacer, boundary_mask, place_fauna
from py_terrain.core.grid import build_grid, generate
from py_terrain.core.models import Animal, FaunaType, LandCover
from py_terrain.utils.random import make_rng


def cover_grid(land_cover):
    land_cover = np.asarray(land_cover, dtype=np.uint8)
    return build_grid(np.zeros(land_cover.shape), land_cover)


class TestBoundaryMask:
    """Test land cover boundary detection."""

    def test_uniform_has_no_boundary(self):
        assert not boundary_mask(np.full((5, 5), LandCover.FOREST, dtype=np.uint8)).any()

    def test_grid_edge_is_not_a_boundary(self):
        mask = boundary_mask(np.array([[0, 0, 1]], dtype=np.uint8))
        assert mask.tolist() == [[False, True, True]]

    def test_diagonal_neighbour_counts(self):
        cover = np.zeros((3, 3), dtype=np.uint8)
        cover[0, 0] = LandCover.FOREST
        mask = boundary_mask(cover)
        assert mask[1, 1]
        assert not mask[2, 2]


class TestFaunaPlacement:
    """Test the per-type placement rules."""

    @pytest.fixture
    def meadow(self):
        return cover_grid(np.full((30, 30), LandCover.MEADOW))

    @pytest.fixture
    def mixed(self):
        cover = np.full((60, 60), LandCover.FOREST, dtype=np.uint8)
        cover[:, 30:] = LandCover.FIELD
        cover[25:35, 40:50] = LandCover.SETTLEMENT
        cover[:5, :] = LandCover.DENSE_FOREST
        return cover_grid(cover)

    def test_default_counts_on_open_meadow(self, meadow):
        animals = place_fauna(meadow, seed="meadow")
        foxes = [a for a in animals if a.type == FaunaType.FOX]
        hares = [a for a in animals if a.type == FaunaType.HARE]
        assert len(foxes) == 8
        assert len(hares) == 18
        assert animals[: len(foxes)] == foxes

    def test_animals_in_bounds(self, meadow):
        for animal in place_fauna(meadow, seed="bounds"):
            assert isinstance(animal, Animal)
            assert meadow.in_bounds(animal.x, animal.y)

    def test_unbroken_forest_has_no_foxes(self):
        grid = cover_grid(np.full((20, 20), LandCover.FOREST))
        assert place_fauna(grid, {FaunaType.FOX: 5, FaunaType.HARE: 5}, seed="forest") == []

    def test_fox_rules(self, mixed):
        placer = FaunaPlacer(mixed, make_rng("fox"))
        animals = placer.place(FaunaType.FOX, 40)
        for fox in animals:
            cover = mixed.land_cover[fox.y, fox.x]
            assert cover in (LandCover.MEADOW, LandCover.FOREST)
            assert placer.is_boundary[fox.y, fox.x]

    def test_hare_rules(self, mixed):
        animals = place_fauna(mixed, {FaunaType.HARE: 60}, seed="hare")
        assert animals
        cover = mixed.land_cover
        blocking = np.argwhere(
            (cover == LandCover.SETTLEMENT) | (cover == LandCover.DENSE_FOREST)
        )
        for hare in animals:
            assert hare.type == FaunaType.HARE
            assert cover[hare.y, hare.x] in (LandCover.FIELD, LandCover.MEADOW)
            assert mixed.passable[hare.y, hare.x]
            chebyshev = np.abs(blocking - [hare.y, hare.x]).max(axis=1)
            assert chebyshev.min() > 3

    def test_counts_are_upper_bounds(self, mixed):
        animals = place_fauna(mixed, {FaunaType.FOX: 500, FaunaType.HARE: 500}, seed="many")
        assert sum(a.type == FaunaType.FOX for a in animals) <= 500
        assert sum(a.type == FaunaType.HARE for a in animals) <= 500

    def test_zero_counts(self, meadow):
        assert place_fauna(meadow, {FaunaType.FOX: 0, FaunaType.HARE: 0}) == []

    def test_missing_type_means_zero(self, meadow):
        animals = place_fauna(meadow, {FaunaType.FOX: 3}, seed="foxes")
        assert [a.type for a in animals] == [FaunaType.FOX] * 3

    def test_negative_count(self, meadow):
        with pytest.raises(ValueError):
            place_fauna(meadow, {FaunaType.HARE: -1})

    def test_reproducible(self):
        grid = generate(width=200, height=200, seed="fauna_grid")
        a = place_fauna(grid, seed="fauna")
        b = place_fauna(grid, seed="fauna")
        assert a == b

    def test_generated_grid_rules(self):
        grid = generate(width=200, height=200, seed="fauna_rules")
        for animal in place_fauna(grid, seed="rules"):
            cover = grid.land_cover[animal.y, animal.x]
            if animal.type == FaunaType.FOX:
                assert cover in (LandCover.MEADOW, LandCover.FOREST)
            else:
                assert cover in (LandCover.FIELD, LandCover.MEADOW)
                assert grid.passable[animal.y, animal.x]
