"""CPU-side buffers holding scene vertices and model matrices."""

from __future__ import annotations

import struct
from typing import Any, Iterable, Sequence

import numpy as np

from .components import (
    DEBUG_DRAW_VERTEX_BUFFER_MAX_SIZE,
    FRAMES_IN_FLIGHT,
    MAX_STATIC_OBJ_ON_SCENE,
    VERTEX_STRIDE,
    FrameContext,
    ObjectLocation,
    Vertex,
)

VERTEX_BUFFER_CAPACITY = DEBUG_DRAW_VERTEX_BUFFER_MAX_SIZE * 100
DYNAMIC_MATRICES_PER_FRAME = 20

_VERTEX = struct.Struct("<3f3fII")
assert _VERTEX.size == VERTEX_STRIDE


def _mat4(matrix: Any) -> np.ndarray:
    arr = np.asarray(matrix, dtype=np.float32)
    if arr.shape != (4, 4):
        raise ValueError(f"expected a 4x4 matrix, got shape {arr.shape}")
    return arr


class VertexBuffer:
    """Append-only store of packed vertices with a fixed byte capacity."""

    def __init__(self, capacity: int = VERTEX_BUFFER_CAPACITY) -> None:
        self.capacity = capacity
        self._data = bytearray()

    @property
    def data(self) -> bytes:
        return bytes(self._data)

    @property
    def size(self) -> int:
        return len(self._data)

    def copy_data(self, vertices: Iterable[Vertex]) -> int:
        """Append the vertices and return the byte offset where they start."""
        packed = b"".join(
            _VERTEX.pack(*map(float, v.pos), *map(float, v.color), int(v.object_index), int(v.padding))
            for v in vertices
        )
        if len(self._data) + len(packed) > self.capacity:
            raise OverflowError("vertex buffer capacity exceeded")
        offset = len(self._data)
        self._data += packed
        return offset


class SceneRenderData:
    """Vertices and model matrices of a scene's static and dynamic objects.

    Static data is written once while a static transfer is open; dynamic data
    is kept once per frame in flight.
    """

    def __init__(self) -> None:
        self.static_vertex_buffer = VertexBuffer()
        self.static_matrices = np.zeros((MAX_STATIC_OBJ_ON_SCENE, 4, 4), dtype=np.float32)
        self.dynamic_vertex_buffers = tuple(VertexBuffer() for _ in range(FRAMES_IN_FLIGHT))
        self.dynamic_matrices = tuple(
            np.zeros((DYNAMIC_MATRICES_PER_FRAME, 4, 4), dtype=np.float32)
            for _ in range(FRAMES_IN_FLIGHT)
        )
        self.vertices_count_static = 0
        self.vertices_count_dynamic = 0
        self._static_mapped = False
        self._static_count = 0
        self._dynamic_count = 0

    def start_transfer_static(self) -> None:
        self._static_mapped = True

    def end_transfer_static(self) -> None:
        self._static_mapped = False

    def update_mat(self, ctx: FrameContext, index: int, mat: Any) -> None:
        """Overwrite a dynamic object's matrix in the buffer of ``ctx.frame``."""
        self.dynamic_matrices[ctx.frame][index] = _mat4(mat)

    def add_static_mat(self, mat: Any) -> int:
        if not self._static_mapped:
            raise RuntimeError(
                "trying to add matrices when start_transfer_static() hasn't been called"
            )
        if self._static_count >= len(self.static_matrices):
            raise IndexError("static matrix buffer is full")
        self.static_matrices[self._static_count] = _mat4(mat)
        self._static_count += 1
        return self._static_count - 1

    def add_dynamic_mat(self, ctx: FrameContext, mat: Any) -> int:
        if self._dynamic_count >= DYNAMIC_MATRICES_PER_FRAME:
            raise IndexError("dynamic matrix buffer is full")
        self.dynamic_matrices[ctx.frame][self._dynamic_count] = _mat4(mat)
        self._dynamic_count += 1
        return self._dynamic_count - 1

    def add_static_object(self, vertices: Sequence[Vertex], matrix: Any) -> ObjectLocation:
        """Store a static object; tags its vertices with the matrix index."""
        index = self.add_static_mat(matrix)
        for vertex in vertices:
            vertex.object_index = index
        offset = self.static_vertex_buffer.copy_data(vertices)
        self.vertices_count_static += len(vertices)
        return ObjectLocation(index, len(vertices), offset)

    def add_dynamic_object(self, vertices: Sequence[Vertex], matrix: Any) -> ObjectLocation:
        """Store a dynamic object in every frame's vertex buffer."""
        index = self.add_dynamic_mat(FrameContext(dt=0.0), matrix)
        for vertex in vertices:
            vertex.object_index = index
        self.vertices_count_dynamic += len(vertices)
        offset = 0
        for buffer in self.dynamic_vertex_buffers:
            offset = buffer.copy_data(vertices)
        return ObjectLocation(index, len(vertices), offset)