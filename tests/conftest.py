import numpy as np
import pytest

from gltf_export.settings import ExportSettings
from gltf_export.source_mesh import SourceMesh


@pytest.fixture
def triangle_mesh():
    return SourceMesh.from_arrays(
        "Triangle",
        positions=[[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]],
        normals=[[0.0, 0.0, 1.0]] * 3,
        indices=[0, 1, 2],
    )


@pytest.fixture
def inline_settings():
    return ExportSettings(max_workers=0)


def build_random_mesh(name="Random", vertex_count=300, triangle_count=500, seed=0, **kwargs):
    """Mesh with positions, normals, tangents and one UV set in a single interleaved stream"""
    rng = np.random.default_rng(seed)
    positions = rng.uniform(-10.0, 10.0, size=(vertex_count, 3)).astype(np.float32)
    normals = rng.normal(size=(vertex_count, 3)).astype(np.float32)
    normals /= np.linalg.norm(normals, axis=1, keepdims=True)
    tangents = np.hstack([
        rng.normal(size=(vertex_count, 3)),
        rng.choice([-1.0, 1.0], size=(vertex_count, 1)),
    ]).astype(np.float32)
    uvs = rng.uniform(0.0, 1.0, size=(vertex_count, 2)).astype(np.float32)
    indices = rng.integers(0, vertex_count, size=triangle_count * 3)
    return SourceMesh.from_arrays(
        name,
        positions=positions,
        normals=normals,
        tangents=tangents,
        uvs=[uvs],
        indices=indices,
        **kwargs,
    )


@pytest.fixture
def random_mesh():
    return build_random_mesh()


@pytest.fixture
def mesh_factory():
    return build_random_mesh
