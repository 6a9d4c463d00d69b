"""
Геометрические примитивы: пересечение луча со сферой.
"""

import numpy as np
from numba import njit
from .math_utils import dot, normalize


@njit(cache=True)
def sphere_roots(ray_origin, ray_dir, center, radius):
    """
    Оба корня уравнения пересечения луча со сферой.

    Решение через проекцию: tca - расстояние вдоль луча до точки
    наибольшего сближения с центром, thc - половина хорды.

    Возвращает: (hit, t0, t1), t0 <= t1
        hit: False, если луч (как прямая) проходит мимо сферы
    """
    L = center - ray_origin
    tca = dot(L, ray_dir)
    d2 = dot(L, L) - tca * tca
    r2 = radius * radius

    if d2 > r2:
        return False, -1.0, -1.0

    thc = np.sqrt(r2 - d2)
    return True, tca - thc, tca + thc


@njit(cache=True)
def sphere_intersect(ray_origin, ray_dir, center, radius):
    """
    Пересечение луча со сферой.

    Параметры:
        ray_origin: начало луча
        ray_dir: направление луча (нормализованное)
        center, radius: сфера

    Возвращает:
        t - ближайший неотрицательный корень, или -1.0 если нет пересечения.
        Если начало луча внутри сферы, ближний корень отрицателен
        и возвращается дальний.
    """
    hit, t0, t1 = sphere_roots(ray_origin, ray_dir, center, radius)
    if not hit:
        return -1.0

    if t0 < 0.0:
        t0 = t1
    if t0 < 0.0:
        return -1.0

    return t0


@njit(cache=True)
def sphere_normal(point, center):
    """Внешняя нормаль сферы в точке point."""
    return normalize(point - center)
