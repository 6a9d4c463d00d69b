"""
Ядро рендеринга.

Два режима:
    whitted - детерминированная рекурсивная трассировка лучей
              (отражение, преломление, тени, освещение по Фонгу)
    path    - трассировка путей методом Монте-Карло
              (диффузное рассеяние, много сэмплов на пиксель)

Все критические функции оптимизированы с помощью numba.
"""

import numpy as np
from numba import njit
from .math_utils import (dot, length, normalize, reflect, refract,
                         offset_origin, is_finite_color, random_unit_vector)
from .scene import intersect_scene
from .camera import get_ray
from .scenes import animate_scene
from . import postprocess


MODES = ('whitted', 'path')

# Смещение начала вторичных лучей от поверхности
RAY_EPSILON = 1e-3

# Доля энергии, сохраняемая при каждом диффузном отскоке
PATH_ATTENUATION = 0.5

DEFAULT_BACKGROUND = (0.2, 0.7, 0.8)
DEFAULT_FALLBACK = (0.0, 0.0, 0.0)


# ==================== РЕЖИМ УИТТЕДА ====================

@njit(cache=True)
def shade_local(point, normal, direction, specular_exponent,
                light_positions, light_intensities,
                centers, radii, material_ids, far):
    """
    Локальное освещение точки: диффузная и бликовая интенсивности,
    просуммированные по всем незатенённым источникам.

    Тень - один булев тест: если теневой луч упирается в геометрию
    ближе источника, вклад источника пропускается.

    Возвращает: (diffuse_intensity, specular_intensity)
    """
    diffuse_intensity = 0.0
    specular_intensity = 0.0

    for i in range(light_positions.shape[0]):
        to_light = light_positions[i] - point
        light_distance = length(to_light)
        # Источник в самой точке - направление не определено
        if light_distance == 0.0:
            continue
        light_dir = to_light / light_distance

        # Теневой луч
        shadow_origin = offset_origin(point, light_dir, normal, RAY_EPSILON)
        shadow_t, shadow_point, shadow_normal, shadow_mat, shadow_front = intersect_scene(
            shadow_origin, light_dir, centers, radii, material_ids, far
        )
        if shadow_mat >= 0 and length(shadow_point - shadow_origin) < light_distance:
            continue

        diffuse_intensity += max(0.0, dot(light_dir, normal)) * light_intensities[i]
        specular_intensity += (max(0.0, dot(reflect(light_dir, normal), direction))
                               ** specular_exponent) * light_intensities[i]

    return diffuse_intensity, specular_intensity


@njit
def trace_whitted(ray_origin, ray_dir, depth, max_depth,
                  centers, radii, material_ids,
                  albedo, diffuse, specular_exponent, refractive_index,
                  light_positions, light_intensities,
                  background, far):
    """
    Рекурсивная трассировка луча по Уиттеду.

    Алгоритм:
    1. depth > max_depth - возвращаем фон (глубина исчерпана)
    2. Ищем пересечение со сценой, промах - фон
    3. Отражённый луч (если вес kr ненулевой), глубина + 1
    4. Преломлённый луч (если вес kt ненулевой), глубина + 1
    5. Локальное освещение с тенями
    6. Смешиваем вклады с весами albedo материала

    Параметры:
        depth: текущая глубина (первичный луч - 0)
        max_depth: максимальная глубина рекурсии
        background: цвет фона
        far: дальняя граница сцены
    """
    if depth > max_depth:
        return background.copy()

    t, hit_point, normal, mat_id, front_face = intersect_scene(
        ray_origin, ray_dir, centers, radii, material_ids, far
    )

    # Луч ушёл в пустоту
    if mat_id < 0:
        return background.copy()

    kd = albedo[mat_id, 0]
    ks = albedo[mat_id, 1]
    kr = albedo[mat_id, 2]
    kt = albedo[mat_id, 3]

    # --- ОТРАЖЕНИЕ ---
    reflect_color = np.zeros(3)
    if kr != 0.0:
        reflect_dir = normalize(reflect(ray_dir, normal))
        reflect_origin = offset_origin(hit_point, reflect_dir, normal, RAY_EPSILON)
        reflect_color = trace_whitted(
            reflect_origin, reflect_dir, depth + 1, max_depth,
            centers, radii, material_ids,
            albedo, diffuse, specular_exponent, refractive_index,
            light_positions, light_intensities, background, far
        )

    # --- ПРЕЛОМЛЕНИЕ ---
    refract_color = np.zeros(3)
    if kt != 0.0:
        # Нормаль смотрит навстречу лучу: снаружи луч входит в тело,
        # изнутри - выходит в вакуум
        if front_face:
            refract_dir = refract(ray_dir, normal, refractive_index[mat_id], 1.0)
        else:
            refract_dir = refract(ray_dir, normal, 1.0, refractive_index[mat_id])
        refract_dir = normalize(refract_dir)
        refract_origin = offset_origin(hit_point, refract_dir, normal, RAY_EPSILON)
        refract_color = trace_whitted(
            refract_origin, refract_dir, depth + 1, max_depth,
            centers, radii, material_ids,
            albedo, diffuse, specular_exponent, refractive_index,
            light_positions, light_intensities, background, far
        )

    # --- ЛОКАЛЬНОЕ ОСВЕЩЕНИЕ ---
    diffuse_intensity, specular_intensity = shade_local(
        hit_point, normal, ray_dir, specular_exponent[mat_id],
        light_positions, light_intensities,
        centers, radii, material_ids, far
    )

    return (diffuse[mat_id] * (diffuse_intensity * kd)
            + specular_intensity * ks
            + reflect_color * kr
            + refract_color * kt)


@njit
def render_whitted(width, height,
                   cam_position, cam_forward, cam_right, cam_up,
                   cam_half_width, cam_half_height,
                   centers, radii, material_ids,
                   albedo, diffuse, specular_exponent, refractive_index,
                   light_positions, light_intensities,
                   background, fallback, max_depth, far):
    """
    Рендеринг кадра по Уиттеду: один луч через центр каждого пикселя.

    Возвращает HDR изображение (height, width, 3) без ограничения яркости.
    Нечисловые значения (NaN, inf) заменяются цветом fallback.
    """
    image = np.zeros((height, width, 3))

    for y in range(height):
        for x in range(width):
            origin, direction = get_ray(
                x + 0.5, y + 0.5, width, height,
                cam_position, cam_forward, cam_right, cam_up,
                cam_half_width, cam_half_height
            )

            color = trace_whitted(
                origin, direction, 0, max_depth,
                centers, radii, material_ids,
                albedo, diffuse, specular_exponent, refractive_index,
                light_positions, light_intensities, background, far
            )

            if not is_finite_color(color):
                color = fallback.copy()

            image[y, x] = color

    return image


# ==================== ТРАССИРОВКА ПУТЕЙ ====================

@njit(cache=True)
def sky_color(direction):
    """Градиент неба: от белого у горизонта к голубому в зените."""
    unit = normalize(direction)
    t = 0.5 * (unit[1] + 1.0)
    return np.ones(3) * (1.0 - t) + np.array([0.5, 0.7, 1.0]) * t


@njit
def scatter_direction(normal, rng):
    """
    Диффузное рассеяние: точка на единичной сфере, касающейся
    поверхности в точке попадания (приближение Ламберта).
    """
    scatter = normal + random_unit_vector(rng)

    # Случайный вектор почти противоположен нормали
    if length(scatter) < 1e-8:
        return normal.copy()

    return normalize(scatter)


@njit
def trace_path(ray_origin, ray_dir, depth,
               centers, radii, material_ids, far, rng):
    """
    Трассировка одного пути методом Монте-Карло.

    depth - оставшееся число отскоков; при depth <= 0 путь
    обрывается и возвращается чёрный цвет.
    """
    if depth <= 0:
        return np.zeros(3)

    t, hit_point, normal, mat_id, front_face = intersect_scene(
        ray_origin, ray_dir, centers, radii, material_ids, far
    )

    if mat_id < 0:
        return sky_color(ray_dir)

    new_dir = scatter_direction(normal, rng)
    new_origin = hit_point + normal * RAY_EPSILON

    return PATH_ATTENUATION * trace_path(
        new_origin, new_dir, depth - 1,
        centers, radii, material_ids, far, rng
    )


@njit
def render_path(width, height, samples_per_pixel,
                cam_position, cam_forward, cam_right, cam_up,
                cam_half_width, cam_half_height,
                centers, radii, material_ids,
                fallback, max_depth, far, rng):
    """
    Рендеринг изображения методом трассировки путей.

    Для каждого пикселя запускается samples_per_pixel лучей со случайным
    смещением внутри пикселя (антиалиасинг).

    Возвращает сумму сэмплов (height, width, 3); деление на число
    сэмплов и гамма-коррекция выполняются при постобработке.
    """
    image = np.zeros((height, width, 3))

    for y in range(height):
        for x in range(width):
            pixel_color = np.zeros(3)

            for _ in range(samples_per_pixel):
                origin, direction = get_ray(
                    x + rng.random(), y + rng.random(), width, height,
                    cam_position, cam_forward, cam_right, cam_up,
                    cam_half_width, cam_half_height
                )

                sample_color = trace_path(
                    origin, direction, max_depth,
                    centers, radii, material_ids, far, rng
                )

                if not is_finite_color(sample_color):
                    sample_color = fallback.copy()

                pixel_color = pixel_color + sample_color

            image[y, x] = pixel_color

    return image


# ==================== ВЫБОР РЕЖИМА ====================

def _color(config, key, default):
    color = np.array(config.get(key, default), dtype=np.float64)
    if color.shape != (3,) or not np.all(np.isfinite(color)):
        raise ValueError(f"{key}: expected 3 finite components, got {config.get(key)}")
    return color


def render_hdr(scene, camera, config: dict, rng=None):
    """
    Рендеринг кадра без постобработки.

    Параметры config:
        mode: 'whitted' или 'path'
        max_depth: глубина рекурсии (whitted - 4, path - 50 по умолчанию)
        samples_per_pixel: число сэмплов на пиксель (только path)
        seed: зерно генератора, если rng не передан (только path)
        far: дальняя граница (по умолчанию scene.far)
        background: цвет фона (только whitted)
        fallback_color: цвет для нечисловых результатов

    Возвращает: (image, samples) - HDR изображение и число сэмплов,
    по которым оно просуммировано.
    """
    mode = config.get('mode', 'whitted')
    if mode not in MODES:
        raise ValueError(f"unknown render mode {mode!r}, expected one of {MODES}")

    max_depth = int(config.get('max_depth', 4 if mode == 'whitted' else 50))
    if max_depth < 0:
        raise ValueError(f"max_depth must be >= 0, got {max_depth}")

    far = float(config.get('far', scene.far))
    if not far > 0:
        raise ValueError(f"far plane must be positive, got {far}")

    fallback = _color(config, 'fallback_color', DEFAULT_FALLBACK)

    scene.ensure_compiled()

    if mode == 'whitted':
        background = _color(config, 'background', DEFAULT_BACKGROUND)
        image = render_whitted(
            *camera.params(),
            scene.centers, scene.radii, scene.material_ids,
            scene.albedo, scene.diffuse,
            scene.specular_exponent, scene.refractive_index,
            scene.light_positions, scene.light_intensities,
            background, fallback, max_depth, far
        )
        return image, 1

    samples = int(config.get('samples_per_pixel', 100))
    if samples < 1:
        raise ValueError(f"samples_per_pixel must be >= 1, got {samples}")
    if rng is None:
        rng = np.random.default_rng(config.get('seed', 0))

    width, height, *cam = camera.params()
    image = render_path(
        width, height, samples, *cam,
        scene.centers, scene.radii, scene.material_ids,
        fallback, max_depth, far, rng
    )
    return image, samples


def render_frame(scene, camera, config: dict, rng=None):
    """
    Рендеринг кадра с постобработкой.

    Возвращает RGBA буфер (height, width, 4) uint8, строки сверху вниз.
    """
    image, samples = render_hdr(scene, camera, config, rng)
    if config.get('mode', 'whitted') == 'whitted':
        return postprocess.finish_whitted(image)
    return postprocess.finish_path(image, samples)


def render_frames(scene, camera, config: dict, rng=None):
    """
    Анимация: перед каждым кадром сдвигает анимированную сферу
    и только затем трассирует кадр целиком. В режиме path
    выдаётся один кадр без анимации.

    Параметры config:
        frames: число кадров
        frame_time_step: шаг времени между кадрами (секунды)

    Генерирует пары (t, buffer).
    """
    mode = config.get('mode', 'whitted')
    frames = int(config.get('frames', 1))
    step = float(config.get('frame_time_step', 1.0 / 30.0))

    # Трассировка путей - один статичный кадр
    if mode == 'path':
        yield 0.0, render_frame(scene, camera, config, rng)
        return

    for frame in range(frames):
        t = frame * step
        animate_scene(scene, t, config.get('animated_sphere', 0))
        yield t, render_frame(scene, camera, config, rng)
