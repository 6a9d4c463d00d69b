"""
Готовые сцены и построение сцены по описанию.

Описание сцены - словарь:
    {
        'materials': {имя: {'albedo', 'diffuse', 'specular_exponent',
                            'refractive_index'}},
        'spheres': [{'center', 'radius', 'material'}],
        'lights': [{'position', 'intensity'}],
        'far': дальняя граница (необязательно),
    }
"""

import copy

import numpy as np
from .scene import Scene, DEFAULT_FAR


# Четыре сферы, три источника: слоновая кость, стекло, резина, зеркало
WHITTED_SCENE = {
    'materials': {
        'ivory': {
            'albedo': [0.6, 0.3, 0.1, 0.0],
            'diffuse': [0.4, 0.4, 0.3],
            'specular_exponent': 50.0,
            'refractive_index': 1.0,
        },
        'glass': {
            'albedo': [0.0, 0.5, 0.1, 0.8],
            'diffuse': [0.6, 0.7, 0.8],
            'specular_exponent': 125.0,
            'refractive_index': 1.5,
        },
        'rubber': {
            'albedo': [0.9, 0.1, 0.0, 0.0],
            'diffuse': [0.3, 0.1, 0.1],
            'specular_exponent': 10.0,
            'refractive_index': 1.0,
        },
        'mirror': {
            'albedo': [0.0, 10.0, 0.8, 0.0],
            'diffuse': [1.0, 1.0, 1.0],
            'specular_exponent': 1425.0,
            'refractive_index': 1.0,
        },
    },
    'spheres': [
        {'center': [-3.0, 0.0, -16.0], 'radius': 2.0, 'material': 'ivory'},
        {'center': [-1.0, -1.5, -12.0], 'radius': 2.0, 'material': 'mirror'},
        {'center': [1.5, -0.5, -18.0], 'radius': 3.0, 'material': 'rubber'},
        {'center': [7.0, 5.0, -18.0], 'radius': 4.0, 'material': 'mirror'},
    ],
    'lights': [
        {'position': [-20.0, 20.0, 20.0], 'intensity': 1.5},
        {'position': [30.0, 50.0, -25.0], 'intensity': 1.8},
        {'position': [30.0, 20.0, 30.0], 'intensity': 1.7},
    ],
}

# Маленькая сфера на огромной сфере-"земле"; материалы в режиме
# трассировки путей не используются, но каждой сфере нужна ссылка
PATH_SCENE = {
    'materials': {
        'diffuse': {
            'albedo': [1.0, 0.0, 0.0, 0.0],
            'diffuse': [0.5, 0.5, 0.5],
        },
    },
    'spheres': [
        {'center': [0.0, 0.0, -1.0], 'radius': 0.5, 'material': 'diffuse'},
        {'center': [0.0, -100.5, -1.0], 'radius': 100.0, 'material': 'diffuse'},
    ],
    'lights': [],
}


def _require(spec, key, what):
    try:
        return spec[key]
    except KeyError:
        raise ValueError(f"{what}: missing required field {key!r}") from None


def scene_from_description(description: dict, verbose=False) -> Scene:
    """
    Строит и компилирует сцену по описанию.
    Ошибки в описании приводят к ValueError ещё до рендеринга.
    """
    if not isinstance(description, dict):
        raise ValueError(f"scene description must be a dict, got {type(description).__name__}")

    scene = Scene(far=description.get('far', DEFAULT_FAR))

    for name, spec in description.get('materials', {}).items():
        scene.add_material(
            albedo=spec.get('albedo', (1.0, 0.0, 0.0, 0.0)),
            diffuse=spec.get('diffuse', (0.5, 0.5, 0.5)),
            specular_exponent=spec.get('specular_exponent', 1.0),
            refractive_index=spec.get('refractive_index', 1.0),
            name=name,
        )

    for i, spec in enumerate(description.get('spheres', [])):
        what = f"sphere #{i}"
        scene.add_sphere(
            _require(spec, 'center', what),
            _require(spec, 'radius', what),
            _require(spec, 'material', what),
        )

    for i, spec in enumerate(description.get('lights', [])):
        what = f"light #{i}"
        scene.add_light(
            _require(spec, 'position', what),
            _require(spec, 'intensity', what),
        )

    scene.compile(verbose=verbose)
    return scene


def create_whitted_scene(config: dict = None) -> Scene:
    """
    Сцена для режима Уиттеда.
    config['scene'] может подменить описание целиком.
    """
    config = config or {}
    description = copy.deepcopy(config.get('scene', WHITTED_SCENE))
    if 'far' in config:
        description['far'] = config['far']
    return scene_from_description(description, verbose=config.get('verbose', False))


def create_path_scene(config: dict = None) -> Scene:
    """Сцена для режима трассировки путей."""
    config = config or {}
    description = copy.deepcopy(config.get('scene', PATH_SCENE))
    if 'far' in config:
        description['far'] = config['far']
    return scene_from_description(description, verbose=config.get('verbose', False))


def create_scene(config: dict) -> Scene:
    """Сцена, соответствующая config['mode']."""
    if config.get('mode', 'whitted') == 'path':
        return create_path_scene(config)
    return create_whitted_scene(config)


def animate_scene(scene: Scene, t: float, sphere_index=0):
    """
    Анимация: сфера sphere_index движется по вертикали, y = sin(t).
    Вызывать только между кадрами.
    """
    if not scene.spheres:
        return
    center = scene.spheres[sphere_index].center.copy()
    center[1] = np.sin(t)
    scene.set_sphere_center(sphere_index, center)
