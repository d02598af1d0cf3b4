import os
import sys

import numpy as np
import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from parameters.global_parameters import GlobalParameters
from runtime.streamlines import (
    StreamlineTracer,
    contains_xy_point,
    face_centroid_streamlines,
    locate,
    resample_streamline_mesh,
    sample,
    step,
    trace,
)
from sample_meshes import grid_mesh, unit_quad


def test_locate_finds_face_of_each_centroid():
    mesh = grid_mesh(3, 3)
    for face in mesh.faces:
        assert locate(mesh, face.centroid(mesh)) == face.index


def test_locate_outside_returns_none():
    mesh = grid_mesh(2, 2)
    assert locate(mesh, [-0.5, 0.5, 0.0]) is None
    assert locate(mesh, [1.0, 2.5, 0.0]) is None


def test_containment_ignores_z_and_includes_sides():
    mesh = unit_quad()
    assert contains_xy_point(mesh, 0, [0.5, 0.5, 42.0])
    assert contains_xy_point(mesh, 0, [1.0, 0.5, 0.0])
    assert contains_xy_point(mesh, 0, [0.0, 0.0, 0.0])
    assert not contains_xy_point(mesh, 0, [1.5, 0.5, 0.0])


def test_sample_is_bilinear():
    vectors = [(1.0, 0.0, 5.0), (0.0, 1.0, 5.0), (-1.0, 0.0, 5.0), (0.0, -1.0, 5.0)]
    mesh = unit_quad(vectors=vectors)

    for v in mesh.vertices:
        value = sample(mesh, 0, v.position)
        assert np.allclose(value[:2], v.vector[:2])
        assert value[2] == 0.0

    assert np.allclose(sample(mesh, 0, [0.5, 0.5, 0.0]), [0.0, 0.0, 0.0])
    assert np.allclose(sample(mesh, 0, [0.5, 0.0, 0.0]), [0.5, 0.5, 0.0])
    assert np.allclose(sample(mesh, 0, [0.25, 0.0, 0.0]), [0.75, 0.25, 0.0])


def test_step_inside_face():
    mesh = grid_mesh(2, 2)
    pos, face = step(mesh, [0.5, 0.5, 0.0], 0, 1, 0.1)
    assert face == 0
    assert np.allclose(pos, [0.6, 0.5, 0.0])

    pos, face = step(mesh, [0.5, 0.5, 0.0], 0, -1, 0.1)
    assert face == 0
    assert np.allclose(pos, [0.4, 0.5, 0.0])


def test_step_crosses_shared_edge():
    mesh = grid_mesh(2, 2)
    pos, face = step(mesh, [0.95, 0.5, 0.0], 0, 1, 0.1)
    assert face == 1
    assert np.allclose(pos, [1.0, 0.5, 0.0])


def test_step_halts_on_boundary_edge():
    mesh = grid_mesh(2, 2)
    pos, face = step(mesh, [1.95, 0.5, 0.0], 1, 1, 0.1)
    assert face is None
    assert np.allclose(pos, [2.0, 0.5, 0.0])


def test_step_halts_at_zero_field():
    mesh = grid_mesh(1, 1, vector=(0.0, 0.0, 3.0))
    start = np.array([0.5, 0.5, 0.0])
    pos, face = step(mesh, start, 0, 1, 0.1)
    assert face is None
    assert np.array_equal(pos, start)


def test_uniform_field_streamline_spans_grid():
    mesh = grid_mesh(2, 2)
    line = trace(mesh, [0.5, 0.5, 0.0], step_size=0.1, num_steps=50)

    assert line.ndim == 2 and line.shape[1] == 3
    xs = line[:, 0]
    steps = np.diff(xs)
    assert np.all(steps >= -1e-12)
    assert np.all(steps <= 0.1 + 1e-9)
    assert np.sum(np.isclose(steps, 0.1)) >= 15
    assert np.allclose(line[:, 1], 0.5)
    assert np.allclose(line[:, 2], 0.0)
    assert xs[0] == pytest.approx(0.0, abs=1e-9)
    assert xs[-1] == pytest.approx(2.0, abs=1e-9)
    # Both directions stop at the boundary well before the step budget.
    assert len(line) < 2 * 50 + 1
    assert any(np.allclose(p, [0.5, 0.5, 0.0]) for p in line)


def test_zero_field_streamline_is_only_the_seed():
    mesh = grid_mesh(2, 2, vector=(0.0, 0.0, 0.0))
    line = trace(mesh, [0.5, 0.5, 0.0], step_size=0.1, num_steps=50)
    assert line.shape == (1, 3)
    assert np.allclose(line[0], [0.5, 0.5, 0.0])


def test_seed_outside_mesh_is_returned_alone():
    mesh = grid_mesh(2, 2)
    line = trace(mesh, [5.0, 5.0, 0.0])
    assert line.shape == (1, 3)
    assert np.allclose(line[0], [5.0, 5.0, 0.0])


def test_step_budget_limits_each_direction():
    mesh = grid_mesh(4, 4, spacing=1.0)
    line = trace(mesh, [2.5, 2.5, 0.0], step_size=0.1, num_steps=3)
    assert len(line) == 7
    assert np.allclose(line[:, 0], [2.2, 2.3, 2.4, 2.5, 2.6, 2.7, 2.8])


def test_vertical_field_streamline_crosses_rows():
    mesh = grid_mesh(2, 2, vector=lambda x, y: (0.0, 1.0, 0.0))
    line = trace(mesh, [0.5, 0.5, 0.0], step_size=0.25, num_steps=20)
    assert np.all(np.diff(line[:, 1]) >= -1e-12)
    assert np.allclose(line[:, 0], 0.5)
    assert line[0, 1] == pytest.approx(0.0)
    assert line[-1, 1] == pytest.approx(2.0)


def test_tracing_does_not_modify_mesh():
    mesh = grid_mesh(2, 2)
    before = mesh.positions_view()
    edges = [(e.v1, e.v2, list(e.faces)) for e in mesh.edges]
    face_centroid_streamlines(mesh, 0.1, 20)
    assert np.array_equal(mesh.positions_view(), before)
    assert [(e.v1, e.v2, list(e.faces)) for e in mesh.edges] == edges


def test_resampled_mesh_has_only_vertices_and_edges(caplog):
    mesh = grid_mesh(2, 2)
    lines = face_centroid_streamlines(mesh, 0.1, 20)
    with caplog.at_level("INFO", logger="quadfield"):
        resampled = resample_streamline_mesh(mesh, 0.1, 20)

    assert resampled.num_faces == 0
    assert resampled.num_vertices == sum(len(line) for line in lines)
    assert resampled.num_edges == sum(len(line) - 1 for line in lines)
    for edge in resampled.edges:
        assert edge.v2 == edge.v1 + 1
    assert "Resampled 4 streamline(s)" in caplog.text
    assert resampled.global_parameters is not mesh.global_parameters


def test_resampling_a_zero_field_gives_empty_mesh():
    mesh = grid_mesh(2, 2, vector=(0.0, 0.0, 0.0))
    resampled = resample_streamline_mesh(mesh, 0.1, 20)
    assert resampled.is_empty
    assert resampled.num_edges == 0


def test_tracer_defaults_come_from_parameters():
    mesh = grid_mesh(2, 2, spacing=0.5)
    tracer = StreamlineTracer(mesh)
    assert tracer.step_size == pytest.approx(0.5)
    assert tracer.num_steps == 100

    params = GlobalParameters({"step_size": 0.05, "num_steps": 7})
    mesh = grid_mesh(2, 2, parameters=params)
    tracer = StreamlineTracer(mesh)
    assert tracer.step_size == 0.05
    assert tracer.num_steps == 7

    tracer = StreamlineTracer(mesh, step_size=0.2, num_steps=3)
    assert (tracer.step_size, tracer.num_steps) == (0.2, 3)


def test_tracer_methods_delegate():
    mesh = grid_mesh(2, 2)
    tracer = StreamlineTracer(mesh, step_size=0.1, num_steps=50)
    assert tracer.locate([1.5, 0.5, 0.0]) == 1
    assert np.allclose(tracer.sample(1, [1.5, 0.5, 0.0]), [1.0, 0.0, 0.0])
    pos, face = tracer.step([0.5, 0.5, 0.0], 0)
    assert face == 0 and np.allclose(pos, [0.6, 0.5, 0.0])
    assert np.allclose(
        tracer.trace([0.5, 0.5, 0.0]), trace(mesh, [0.5, 0.5, 0.0], None, 0.1, 50)
    )
    assert len(tracer.face_centroid_streamlines()) == 4
    assert tracer.resample().num_faces == 0
