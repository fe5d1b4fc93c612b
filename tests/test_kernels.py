import struct
import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from gltf_export.errors import MeshLayoutError
from gltf_export.kernels import (
    convert_positions, convert_rotation, convert_tangents, convert_translation,
    flip_indices, position_bounds, run_batched, strided_float_view,
)


def test_flip_indices_swaps_last_two_of_each_triangle():
    indices = np.array([0, 1, 2, 3, 4, 5], dtype='<u2')
    assert flip_indices(indices).tolist() == [0, 2, 1, 3, 5, 4]


def test_flip_indices_leaves_input_untouched():
    indices = np.array([7, 8, 9], dtype='<u4')
    flip_indices(indices)
    assert indices.tolist() == [7, 8, 9]


def test_flip_indices_keeps_trailing_indices():
    indices = np.array([0, 1, 2, 3, 4], dtype='<u2')
    assert flip_indices(indices).tolist() == [0, 2, 1, 3, 4]


def test_flip_indices_twice_is_identity_with_executor():
    rng = np.random.default_rng(3)
    indices = rng.integers(0, 60000, size=3 * 1000).astype('<u2')
    with ThreadPoolExecutor(max_workers=4) as executor:
        once = flip_indices(indices, batch_size=7, executor=executor)
        twice = flip_indices(once, batch_size=7, executor=executor)
    assert not np.array_equal(once, indices)
    assert np.array_equal(twice, indices)
    assert once.dtype == indices.dtype


def test_run_batched_covers_range_once():
    seen = []
    lock = threading.Lock()

    def job(start, end):
        with lock:
            seen.extend(range(start, end))

    with ThreadPoolExecutor(max_workers=3) as executor:
        run_batched(job, 1000, batch_size=64, executor=executor)
    assert sorted(seen) == list(range(1000))


def test_run_batched_inline_batches_in_order():
    calls = []
    run_batched(lambda start, end: calls.append((start, end)), 10, batch_size=4)
    assert calls == [(0, 4), (4, 8), (8, 10)]


def test_run_batched_nothing_to_do():
    calls = []
    run_batched(lambda start, end: calls.append((start, end)), 0, batch_size=4)
    assert calls == []


def test_run_batched_propagates_errors():
    def job(start, end):
        if start >= 8:
            raise RuntimeError("boom")

    with ThreadPoolExecutor(max_workers=2) as executor:
        with pytest.raises(RuntimeError, match="boom"):
            run_batched(job, 16, batch_size=4, executor=executor)


def interleaved(rows):
    """pos(3) + uv(2) per vertex, 20 byte stride"""
    return np.asarray(rows, dtype='<f4').tobytes()


def test_convert_positions_mirrors_x_only():
    src = interleaved([[1, 2, 3, 0.25, 0.5], [-4, 5, 6, 0.75, 1.0]])
    dst = bytearray(src)
    convert_positions(src, dst, 0, 20, 2)

    result = np.frombuffer(bytes(dst), dtype='<f4').reshape(2, 5)
    assert result.tolist() == [[-1, 2, 3, 0.25, 0.5], [4, 5, 6, 0.75, 1.0]]


def test_convert_positions_twice_restores_data():
    rng = np.random.default_rng(1)
    original = rng.normal(size=(100, 8)).astype('<f4').tobytes()
    once = bytearray(original)
    convert_positions(original, once, 12, 32, 100, batch_size=9)
    twice = bytearray(once)
    convert_positions(bytes(once), twice, 12, 32, 100, batch_size=9)
    assert bytes(twice) == original

    before = strided_float_view(original, 12, 32, 100, 3)
    after = strided_float_view(once, 12, 32, 100, 3)
    assert np.array_equal(np.linalg.norm(before, axis=1), np.linalg.norm(after, axis=1))


def test_convert_tangents_flips_x_and_w():
    src = np.array([[0.5, 0.25, -1.0, 1.0], [-2.0, 3.0, 4.0, -1.0]], dtype='<f4').tobytes()
    dst = bytearray(src)
    convert_tangents(src, dst, 0, 16, 2)
    result = np.frombuffer(bytes(dst), dtype='<f4').reshape(2, 4)
    assert result.tolist() == [[-0.5, 0.25, -1.0, -1.0], [2.0, 3.0, 4.0, 1.0]]


@pytest.mark.parametrize("count", [2, 3, 7, 64])
def test_convert_tightly_packed_tangents(count):
    rng = np.random.default_rng(count)
    tangents = rng.normal(size=(count, 4)).astype('<f4')
    dst = bytearray(tangents.tobytes())
    convert_tangents(tangents.tobytes(), dst, 0, 16, count, batch_size=5)

    expected = tangents.copy()
    expected[:, [0, 3]] *= -1
    assert np.array_equal(np.frombuffer(bytes(dst), dtype='<f4').reshape(count, 4), expected)


@pytest.mark.parametrize("count", [2, 9])
def test_convert_tightly_packed_positions(count):
    positions = np.arange(count * 3, dtype='<f4').reshape(count, 3) + 1
    dst = bytearray(positions.tobytes())
    convert_positions(positions.tobytes(), dst, 0, 12, count, batch_size=4)

    expected = positions.copy()
    expected[:, 0] *= -1
    assert np.array_equal(np.frombuffer(bytes(dst), dtype='<f4').reshape(count, 3), expected)


def test_convert_positions_at_unaligned_offset():
    # 2 bytes of color, then a float3 position: 14 byte stride
    src = b''.join(struct.pack('<2B3f', 10, 20, x, x + 1, x + 2) for x in (1.0, 2.0, 3.0))
    dst = bytearray(src)
    convert_positions(src, dst, 2, 14, 3)

    rows = [struct.unpack_from('<2B3f', dst, i * 14) for i in range(3)]
    assert rows == [(10, 20, -1.0, 2.0, 3.0), (10, 20, -2.0, 3.0, 4.0), (10, 20, -3.0, 4.0, 5.0)]


def test_strided_float_view_rejects_out_of_bounds():
    data = bytes(40)
    with pytest.raises(MeshLayoutError):
        strided_float_view(data, 4, 12, 4, 3)
    with pytest.raises(MeshLayoutError):
        strided_float_view(data, 0, 8, 2, 3)


def test_strided_float_view_empty():
    view = strided_float_view(b'', 0, 12, 0, 3)
    assert view.shape == (0, 3)


def test_position_bounds():
    view = np.array([[1, -2, 3], [-1, 5, 0]], dtype='<f4')
    assert position_bounds(view) == ([-1.0, -2.0, 0.0], [1.0, 5.0, 3.0])


def test_convert_translation_and_rotation():
    assert convert_translation((1.0, 2.0, 3.0)) == (-1.0, 2.0, 3.0)
    assert convert_rotation((0.1, 0.2, 0.3, 0.9)) == (0.1, -0.2, -0.3, 0.9)
