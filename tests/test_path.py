import numpy as np
import pytest

from raytracer.camera import Camera
from raytracer.renderer import sky_color, trace_path, render_frame, render_frames
from raytracer.scenes import create_path_scene


def path_args(scene):
    return scene.centers, scene.radii, scene.material_ids, scene.far


@pytest.mark.parametrize("direction", [
    [0.0, 0.0, -1.0],
    [0.0, 1.0, 0.0],
    [0.5, -0.5, 0.1],
])
def test_zero_depth_is_black(origin, single_sphere_scene, direction):
    rng = np.random.default_rng(0)
    color = trace_path(origin, np.array(direction), 0,
                       *path_args(single_sphere_scene), rng)
    assert np.array_equal(color, np.zeros(3))


def test_single_bounce_budget_ends_black_on_hit(origin, forward, single_sphere_scene):
    rng = np.random.default_rng(0)
    color = trace_path(origin, forward, 1, *path_args(single_sphere_scene), rng)
    assert np.array_equal(color, np.zeros(3))


def test_miss_returns_sky_gradient(origin, single_sphere_scene):
    rng = np.random.default_rng(0)
    up = np.array([0.0, 1.0, 0.0])
    assert np.allclose(trace_path(origin, up, 5, *path_args(single_sphere_scene), rng),
                       [0.5, 0.7, 1.0])
    assert np.allclose(sky_color(np.array([0.0, -1.0, 0.0])), [1.0, 1.0, 1.0])
    assert np.allclose(sky_color(np.array([1.0, 0.0, 0.0])), [0.75, 0.85, 1.0])


def test_each_bounce_halves_energy(origin, forward, single_sphere_scene):
    rng = np.random.default_rng(3)
    for _ in range(20):
        color = trace_path(origin, forward, 2, *path_args(single_sphere_scene), rng)
        assert np.all(color >= 0.0)
        assert np.all(color <= 0.5)


def test_same_seed_gives_identical_frames():
    scene = create_path_scene()
    camera = Camera(width=12, height=8, fov=90)
    config = {'mode': 'path', 'samples_per_pixel': 4, 'max_depth': 10, 'seed': 42}
    first = render_frame(scene, camera, config)
    second = render_frame(scene, camera, config)
    assert first.shape == (8, 12, 4)
    assert np.array_equal(first, second)
    assert np.all(first[..., 3] == 255)


def test_center_pixel_hit_differs_from_sky(small_camera, make_scene):
    scene = make_scene()
    config = {'mode': 'path', 'samples_per_pixel': 8, 'max_depth': 8, 'seed': 1}
    buffer = render_frame(scene, small_camera, config)

    center = buffer[10, 16, :3].astype(int)
    corner = buffer[0, 0, :3].astype(int)
    # Попадание: не больше половины неба на отскок, промах - чистое небо
    assert center.sum() < corner.sum()
    assert np.all(buffer[..., :3] <= 254)


def test_bad_sample_count_rejected(single_sphere_scene, small_camera):
    with pytest.raises(ValueError, match="samples_per_pixel"):
        render_frame(single_sphere_scene, small_camera,
                     {'mode': 'path', 'samples_per_pixel': 0})


def test_path_mode_renders_single_static_frame():
    scene = create_path_scene()
    before = scene.centers.copy()
    camera = Camera(width=6, height=4, fov=90)
    config = {'mode': 'path', 'samples_per_pixel': 1, 'max_depth': 3, 'frames': 5}
    frames = list(render_frames(scene, camera, config))
    assert len(frames) == 1
    assert np.array_equal(scene.centers, before)
