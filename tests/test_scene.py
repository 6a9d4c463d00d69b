import numpy as np
import pytest

from raytracer.scene import Scene, intersect_scene


def make_scene(*spheres, far=1000.0):
    scene = Scene(far=far)
    mat = scene.add_material(name='m')
    for center, radius in spheres:
        scene.add_sphere(center, radius, mat)
    scene.compile(verbose=False)
    return scene


@pytest.mark.parametrize("direction", [
    [0.0, 0.0, -1.0],
    [0.0, 1.0, 0.0],
    [0.6, 0.0, 0.8],
])
def test_empty_scene_never_hits(direction):
    scene = Scene()
    scene.compile(verbose=False)
    assert scene.intersect(np.zeros(3), direction) is None

    t, _, _, mat_id, _ = intersect_scene(
        np.zeros(3), np.array(direction), scene.centers, scene.radii,
        scene.material_ids, scene.far
    )
    assert mat_id == -1
    assert t == -1.0


def test_nearest_hit_wins_regardless_of_order(origin, forward):
    near, far = ([0.0, 0.0, -5.0], 1.0), ([0.0, 0.0, -10.0], 1.0)
    for scene in (make_scene(near, far), make_scene(far, near)):
        hit = scene.intersect(origin, forward)
        assert hit.distance == pytest.approx(4.0)
        assert np.allclose(hit.point, [0.0, 0.0, -4.0])
        assert np.allclose(hit.normal, [0.0, 0.0, 1.0])
        assert hit.front_face


def test_far_cutoff_is_configurable(origin, forward):
    distant = ([0.0, 0.0, -2000.0], 1.0)
    assert make_scene(distant).intersect(origin, forward) is None
    hit = make_scene(distant, far=5000.0).intersect(origin, forward)
    assert hit.distance == pytest.approx(1999.0)


def test_normal_faces_incoming_ray_from_inside(forward):
    scene = make_scene(([0.0, 0.0, -5.0], 1.0))
    hit = scene.intersect(np.array([0.0, 0.0, -5.0]), forward)
    assert hit.distance == pytest.approx(1.0)
    assert not hit.front_face
    assert np.allclose(hit.normal, [0.0, 0.0, 1.0])


def test_materials_are_shared_between_spheres(origin):
    scene = Scene()
    mat = scene.add_material(albedo=(0.0, 10.0, 0.8, 0.0), name='mirror')
    scene.add_sphere([-2.0, 0.0, -5.0], 1.0, 'mirror')
    scene.add_sphere([2.0, 0.0, -5.0], 1.0, mat)
    left = scene.intersect(origin, np.array([-2.0, 0.0, -5.0]) / np.sqrt(29.0))
    right = scene.intersect(origin, np.array([2.0, 0.0, -5.0]) / np.sqrt(29.0))
    assert left.material is right.material


@pytest.mark.parametrize("radius", [0.0, -1.0])
def test_non_positive_radius_rejected(radius):
    scene = Scene()
    scene.add_material()
    with pytest.raises(ValueError, match="radius"):
        scene.add_sphere([0.0, 0.0, 0.0], radius, 0)


def test_non_positive_light_intensity_rejected():
    with pytest.raises(ValueError, match="intensity"):
        Scene().add_light([0.0, 10.0, 0.0], 0.0)


@pytest.mark.parametrize("kwargs, match", [
    ({'specular_exponent': 0.0}, "specular exponent"),
    ({'refractive_index': 0.5}, "refractive index"),
    ({'albedo': (1.0, 0.0, 0.0)}, "albedo"),
    ({'diffuse': (1.0, np.nan, 0.0)}, "finite"),
])
def test_bad_material_rejected(kwargs, match):
    with pytest.raises(ValueError, match=match):
        Scene().add_material(**kwargs)


def test_unknown_material_rejected():
    scene = Scene()
    with pytest.raises(ValueError, match="unknown material"):
        scene.add_sphere([0.0, 0.0, -5.0], 1.0, 'glass')
    with pytest.raises(ValueError, match="unknown material"):
        scene.add_sphere([0.0, 0.0, -5.0], 1.0, 3)


def test_duplicate_material_name_rejected():
    scene = Scene()
    scene.add_material(name='ivory')
    with pytest.raises(ValueError, match="already defined"):
        scene.add_material(name='ivory')


def test_bad_far_plane_rejected():
    with pytest.raises(ValueError, match="far"):
        Scene(far=0.0)


def test_set_sphere_center_updates_compiled_arrays(origin, forward):
    scene = make_scene(([0.0, 0.0, -5.0], 1.0))
    scene.set_sphere_center(0, [0.0, 0.0, -8.0])
    assert np.allclose(scene.centers[0], [0.0, 0.0, -8.0])
    assert np.allclose(scene.spheres[0].center, [0.0, 0.0, -8.0])
    assert scene.intersect(origin, forward).distance == pytest.approx(7.0)


def test_adding_geometry_after_compile_recompiles(origin, forward):
    scene = make_scene()
    assert scene.intersect(origin, forward) is None
    scene.add_sphere([0.0, 0.0, -3.0], 1.0, 0)
    assert scene.intersect(origin, forward).distance == pytest.approx(2.0)
