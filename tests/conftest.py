import numpy as np
import pytest

from raytracer.camera import Camera
from raytracer.scene import Scene


def _single_sphere_scene(albedo=(1.0, 0.0, 0.0, 0.0), diffuse=(1.0, 1.0, 1.0),
                         lights=(((0.0, 10.0, 0.0), 1.0),),
                         refractive_index=1.0):
    """Одна сфера радиуса 1 на оси -z, камера в начале координат."""
    scene = Scene()
    mat = scene.add_material(albedo=albedo, diffuse=diffuse,
                             specular_exponent=10.0,
                             refractive_index=refractive_index, name='test')
    scene.add_sphere([0.0, 0.0, -5.0], 1.0, mat)
    for position, intensity in lights:
        scene.add_light(position, intensity)
    scene.compile(verbose=False)
    return scene


def _whitted_args(scene, background=(0.2, 0.7, 0.8)):
    """Аргументы trace_whitted после (origin, direction, depth, max_depth)."""
    return (scene.centers, scene.radii, scene.material_ids,
            scene.albedo, scene.diffuse,
            scene.specular_exponent, scene.refractive_index,
            scene.light_positions, scene.light_intensities,
            np.array(background, dtype=np.float64), scene.far)


@pytest.fixture
def make_scene():
    return _single_sphere_scene


@pytest.fixture
def trace_args():
    return _whitted_args


@pytest.fixture
def single_sphere_scene():
    return _single_sphere_scene()


@pytest.fixture
def small_camera():
    # Нечётные размеры: центральный пиксель смотрит ровно вдоль -z
    return Camera(width=33, height=21, fov=60)


@pytest.fixture
def origin():
    return np.zeros(3)


@pytest.fixture
def forward():
    return np.array([0.0, 0.0, -1.0])
