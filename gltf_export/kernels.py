"""
Coordinate conversion kernels.

The source data is left-handed with clockwise front faces; glTF is
right-handed with counter-clockwise front faces. Mirroring the X axis
converts positions, normals and tangents (tangents also flip their
bitangent sign), and swapping the last two indices of every triangle
restores the winding.

Array kernels split their work into fixed-size batches. When an executor is
given the batches run on it, and every kernel waits for all of its batches
before returning, so the output is complete once the call comes back.
"""
from concurrent.futures import Executor
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .errors import MeshLayoutError
from .settings import DEFAULT_BATCH_SIZE

FLOAT32_SIZE = 4


def run_batched(
    job: Callable[[int, int], None],
    count: int,
    batch_size: int = DEFAULT_BATCH_SIZE,
    executor: Optional[Executor] = None,
) -> None:
    """Call job(start, end) for consecutive batches covering [0, count) and wait for all of them"""
    if count <= 0:
        return
    ranges = [(start, min(start + batch_size, count)) for start in range(0, count, batch_size)]
    if executor is None or len(ranges) == 1:
        for start, end in ranges:
            job(start, end)
        return

    futures = [executor.submit(job, start, end) for start, end in ranges]
    for future in futures:
        future.result()


def flip_indices(
    indices: np.ndarray,
    batch_size: int = DEFAULT_BATCH_SIZE,
    executor: Optional[Executor] = None,
) -> np.ndarray:
    """
    Return a copy of a flat triangle index array with every (a, b, c)
    turned into (a, c, b). Trailing indices that do not form a whole
    triangle are copied unchanged.
    """
    result = np.array(indices, copy=True)
    triangle_count = len(indices) // 3
    if triangle_count == 0:
        return result

    src = np.asarray(indices)[:triangle_count * 3].reshape(triangle_count, 3)
    dst = result[:triangle_count * 3].reshape(triangle_count, 3)

    def job(start: int, end: int):
        dst[start:end, 1] = src[start:end, 2]
        dst[start:end, 2] = src[start:end, 1]

    run_batched(job, triangle_count, batch_size, executor)
    return result


def strided_float_view(buffer, offset: int, stride: int, count: int, components: int) -> np.ndarray:
    """
    View `count` float32 vectors of `components` each inside an interleaved
    byte buffer, starting at `offset` and `stride` bytes apart.

    The view shares memory with the buffer (writable when the buffer is).
    """
    row = components * FLOAT32_SIZE
    if count == 0:
        return np.empty((0, components), dtype='<f4')
    if stride < row:
        raise MeshLayoutError(f"stride {stride} is smaller than a {row}-byte element")
    length = (count - 1) * stride + row
    if offset < 0 or offset + length > len(buffer):
        raise MeshLayoutError(
            f"{count} elements at offset {offset} with stride {stride} "
            f"exceed the {len(buffer)}-byte stream")

    raw = np.frombuffer(buffer, dtype=np.uint8, count=length, offset=offset)
    rows = np.lib.stride_tricks.as_strided(raw, shape=(count, row), strides=(stride, 1))
    return rows.view('<f4')


def convert_positions(
    src_buffer,
    dst_buffer: bytearray,
    offset: int,
    stride: int,
    count: int,
    batch_size: int = DEFAULT_BATCH_SIZE,
    executor: Optional[Executor] = None,
) -> None:
    """Mirror X of float3 positions/normals from src into dst; other bytes of dst are not touched"""
    src = strided_float_view(src_buffer, offset, stride, count, 3)
    dst = strided_float_view(dst_buffer, offset, stride, count, 3)

    def job(start: int, end: int):
        dst[start:end, 1:] = src[start:end, 1:]
        dst[start:end, 0] = -src[start:end, 0]

    run_batched(job, count, batch_size, executor)


def convert_tangents(
    src_buffer,
    dst_buffer: bytearray,
    offset: int,
    stride: int,
    count: int,
    batch_size: int = DEFAULT_BATCH_SIZE,
    executor: Optional[Executor] = None,
) -> None:
    """Mirror X of float4 tangents and flip their handedness sign (W)"""
    src = strided_float_view(src_buffer, offset, stride, count, 4)
    dst = strided_float_view(dst_buffer, offset, stride, count, 4)

    def job(start: int, end: int):
        dst[start:end, 1:3] = src[start:end, 1:3]
        dst[start:end, 0] = -src[start:end, 0]
        dst[start:end, 3] = -src[start:end, 3]

    run_batched(job, count, batch_size, executor)


def position_bounds(view: np.ndarray) -> Tuple[List[float], List[float]]:
    """Component-wise min and max of a (count, 3) float view"""
    return ([float(v) for v in view.min(axis=0)],
            [float(v) for v in view.max(axis=0)])


def convert_translation(translation: Sequence[float]) -> Tuple[float, float, float]:
    x, y, z = translation
    return (-x, y, z)


def convert_rotation(rotation: Sequence[float]) -> Tuple[float, float, float, float]:
    """Mirror an (x, y, z, w) quaternion across the YZ plane"""
    x, y, z, w = rotation
    return (x, -y, -z, w)
