"""Tests for type-tag dispatch and the host-side batch API.

Tests cover:
- eval_material / sample_material agreeing with the per-material functions
- NaN results for emitters inside kernels
- Broadcasting of row vectors and stream assignment
- Shape and stream validation
- Empty batches and refilling of exhausted streams
"""

import math

import numpy as np
import pytest
import taichi as ti

UP = (0.0, 1.0, 0.0)
DOWN = (0.0, -1.0, 0.0)


class TestKernelDispatch:
    """Tests for dispatch by type tag inside kernels."""

    def test_eval_material_matches_phong(self):
        """Test the dispatcher forwards the exponent to the Phong lobe."""
        from pathshade.core.vec import vec3
        from pathshade.materials import MaterialType, eval_material, eval_phong

        dispatched = ti.Vector.field(3, dtype=ti.f32, shape=())
        direct = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            albedo = vec3(0.9, 0.5, 0.1)
            wi = vec3(0.6, -0.8, 0.0)
            n = vec3(0.0, 1.0, 0.0)
            wo = vec3(-0.6, 0.8, 0.0).normalized()
            dispatched[None] = eval_material(
                int(MaterialType.NORMALIZED_PHONG), albedo, 12.0, wi, n, wo
            )
            direct[None] = eval_phong(albedo, 12.0, wi, n, wo)

        test_kernel()
        np.testing.assert_allclose(dispatched[None].to_numpy(), direct[None].to_numpy())

    def test_emitter_and_unknown_tags_give_nan(self):
        """Test emitters and unknown tags never produce a usable value."""
        from pathshade.core.vec import vec3
        from pathshade.materials import MaterialType, eval_material

        result = ti.Vector.field(3, dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            n = vec3(0.0, 1.0, 0.0)
            albedo = vec3(1.0, 1.0, 1.0)
            result[0] = eval_material(int(MaterialType.EMISSIVE), albedo, 0.0, -n, n, n)
            result[1] = eval_material(99, albedo, 0.0, -n, n, n)

        test_kernel()
        assert np.isnan(result.to_numpy()).all()

    def test_sample_material_matches_dielectric(self, small_rng):
        """Test the dispatcher forwards the index of refraction to the glass."""
        from pathshade.core.vec import vec3
        from pathshade.materials import MaterialType, sample_material

        small_rng.load(0, [0.99])
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        pdf = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            d, p, f, delta = sample_material(
                small_rng,
                0,
                int(MaterialType.IDEAL_DIELECTRIC),
                vec3(1.0, 1.0, 1.0),
                1.5,
                vec3(0.0, -1.0, 0.0),
                vec3(0.0, 1.0, 0.0),
            )
            direction[None] = d
            pdf[None] = p

        test_kernel()
        np.testing.assert_allclose(direction[None].to_numpy(), DOWN, atol=1e-6)
        assert abs(pdf[None] - 0.96) < 1e-5


class TestBatchShapes:
    """Tests for broadcasting and validation of batch arguments."""

    def test_row_vectors_broadcast(self):
        """Test a single incoming direction and normal apply to every row."""
        from pathshade.materials import LambertianCosine, evaluate_batch

        outgoing = np.array([[0.0, 1.0, 0.0], [0.6, 0.8, 0.0], [0.0, 0.8, 0.6]])
        values = evaluate_batch(LambertianCosine((0.5, 0.5, 0.5)), DOWN, UP, outgoing)
        assert values.shape == (3, 3)
        assert values.dtype == np.float32
        np.testing.assert_allclose(values, 0.5 / math.pi, rtol=1e-6)

    def test_row_count_mismatch(self):
        """Test arrays with different row counts raise ValueError."""
        from pathshade.materials import LambertianCosine, evaluate_batch

        with pytest.raises(ValueError):
            evaluate_batch(
                LambertianCosine((0.5, 0.5, 0.5)),
                np.tile(DOWN, (2, 1)),
                np.tile(UP, (3, 1)),
                UP,
            )

    def test_bad_vector_shape(self):
        """Test vectors that are not 3-component raise ValueError."""
        from pathshade.materials import LambertianCosine, evaluate_batch

        with pytest.raises(ValueError):
            evaluate_batch(LambertianCosine((0.5, 0.5, 0.5)), (0.0, -1.0), UP, UP)

    def test_single_row_in_either_position(self):
        """Test a (1, 3) array broadcasts like a (3,) vector wherever it appears."""
        from pathshade.materials import LambertianCosine, evaluate_batch

        material = LambertianCosine((0.5, 0.5, 0.5))
        first = evaluate_batch(material, np.array([DOWN]), np.tile(UP, (5, 1)), UP)
        second = evaluate_batch(material, np.tile(DOWN, (5, 1)), np.array([UP]), UP)
        assert first.shape == (5, 3)
        assert second.shape == (5, 3)
        np.testing.assert_array_equal(first, second)

    def test_empty_eval_batch(self):
        """Test a batch with no rows evaluates to an empty (0, 3) array."""
        from pathshade.materials import LambertianCosine, evaluate_batch

        values = evaluate_batch(
            LambertianCosine((0.5, 0.5, 0.5)), DOWN, np.zeros((0, 3)), np.zeros((0, 3))
        )
        assert values.shape == (0, 3)
        assert values.dtype == np.float32

    def test_empty_sample_batch(self, small_rng):
        """Test sampling no rows returns an empty batch and draws nothing."""
        from pathshade.materials import LambertianSimple, sample_batch

        material = LambertianSimple((0.5, 0.5, 0.5))
        batch = sample_batch(material, small_rng, DOWN, np.zeros((0, 3)))
        assert len(batch) == 0
        assert batch.directions.shape == (0, 3)
        assert batch.brdf_values.shape == (0, 3)

        batch = sample_batch(material, small_rng, DOWN, UP, streams=[])
        assert len(batch) == 0
        assert [small_rng.consumed(s) for s in range(4)] == [0, 0, 0, 0]

    def test_explicit_streams_row_mismatch(self, small_rng):
        """Test explicit streams must match the number of direction rows."""
        from pathshade.materials import LambertianSimple, sample_batch

        with pytest.raises(ValueError):
            sample_batch(
                LambertianSimple((0.5, 0.5, 0.5)),
                small_rng,
                DOWN,
                np.tile(UP, (3, 1)),
                streams=[0, 1],
            )

    def test_exhausted_stream_is_refilled(self):
        """Test a stream without room for another sample gets fresh draws first."""
        from pathshade.core.rng import RandomStreams
        from pathshade.materials import LambertianCosine, sample_batch

        rng = RandomStreams(count=1, length=2, seed=5)
        material = LambertianCosine((0.5, 0.5, 0.5))
        first = sample_batch(material, rng, DOWN, UP)
        second = sample_batch(material, rng, DOWN, UP)
        assert rng.consumed(0) == 2
        assert not np.allclose(first.directions, second.directions)

    def test_default_streams(self, small_rng):
        """Test row i draws from stream i by default."""
        from pathshade.materials import LambertianSimple, sample_batch

        sample_batch(LambertianSimple((0.5, 0.5, 0.5)), small_rng, DOWN, np.tile(UP, (3, 1)))
        assert [small_rng.consumed(s) for s in range(4)] == [2, 2, 2, 0]

    def test_explicit_streams(self, small_rng):
        """Test rows draw from the streams they are given."""
        from pathshade.materials import LambertianSimple, sample_batch

        batch = sample_batch(LambertianSimple((0.5, 0.5, 0.5)), small_rng, DOWN, UP, streams=[3, 1])
        assert len(batch) == 2
        assert [small_rng.consumed(s) for s in range(4)] == [0, 2, 0, 2]

    def test_shared_stream_rejected(self, small_rng):
        """Test two rows may not share a stream."""
        from pathshade.materials import LambertianSimple, sample_batch

        with pytest.raises(ValueError):
            sample_batch(LambertianSimple((0.5, 0.5, 0.5)), small_rng, DOWN, UP, streams=[1, 1])

    def test_stream_out_of_range(self, small_rng):
        """Test a stream index beyond the RNG raises ValueError."""
        from pathshade.materials import LambertianSimple, sample_batch

        with pytest.raises(ValueError):
            sample_batch(LambertianSimple((0.5, 0.5, 0.5)), small_rng, DOWN, UP, streams=[4])

    def test_row_to_sample(self, small_rng):
        """Test a batch row converts to a ScatterSample of plain floats."""
        from pathshade.materials import Color, LambertianCosine, ScatterSample, sample_batch

        batch = sample_batch(LambertianCosine((0.5, 0.5, 0.5)), small_rng, DOWN, UP)
        sample = batch.row(0)
        assert isinstance(sample, ScatterSample)
        assert isinstance(sample.brdf_value, Color)
        assert isinstance(sample.pdf, float)
        assert sample.delta is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
