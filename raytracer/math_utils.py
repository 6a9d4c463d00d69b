"""
Математические утилиты для работы с 3D векторами.
Оптимизировано с помощью numba для ускорения.
"""

import numpy as np
from numba import njit


@njit(cache=True)
def length(v):
    """Длина вектора."""
    return np.sqrt(v[0]**2 + v[1]**2 + v[2]**2)


@njit(cache=True)
def normalize(v):
    """
    Нормализация вектора (приведение к единичной длине).

    Вектор нулевой длины нормализовать нельзя - это ошибка вызывающего кода,
    поэтому бросаем исключение вместо тихого распространения NaN.
    """
    norm = length(v)
    if norm == 0.0:
        raise ValueError("normalize: zero-length vector")
    return v / norm


@njit(cache=True)
def dot(a, b):
    """Скалярное произведение двух векторов."""
    return a[0]*b[0] + a[1]*b[1] + a[2]*b[2]


@njit(cache=True)
def cross(a, b):
    """Векторное произведение двух векторов."""
    return np.array([
        a[1]*b[2] - a[2]*b[1],
        a[2]*b[0] - a[0]*b[2],
        a[0]*b[1] - a[1]*b[0]
    ])


@njit(cache=True)
def negate(v):
    """Вектор противоположного направления."""
    return -v


@njit(cache=True)
def reflect(direction, normal):
    """Зеркальное отражение вектора direction относительно нормали."""
    return direction - normal * (2.0 * dot(direction, normal))


@njit(cache=True)
def refract(direction, normal, eta_t, eta_i):
    """
    Преломление по закону Снелла.

    Параметры:
        direction: падающее направление (нормализованное)
        normal: нормаль поверхности
        eta_t: показатель преломления среды, в которую входит луч
        eta_i: показатель преломления среды, из которой выходит луч

    Если луч выходит из тела (cos < 0), нормаль разворачивается,
    а показатели меняются местами.

    При полном внутреннем отражении (k < 0) преломлённого луча нет,
    возвращается зеркально отражённое направление.
    """
    cosi = -max(-1.0, min(1.0, dot(direction, normal)))
    n = normal.copy()
    n_t = float(eta_t)
    n_i = float(eta_i)
    if cosi < 0.0:
        cosi = -cosi
        n = -normal
        n_t, n_i = n_i, n_t

    eta = n_i / n_t
    k = 1.0 - eta * eta * (1.0 - cosi * cosi)

    # Полное внутреннее отражение
    if k < 0.0:
        return reflect(direction, n)

    return direction * eta + n * (eta * cosi - np.sqrt(k))


@njit(cache=True)
def offset_origin(point, direction, normal, epsilon):
    """
    Смещает начало вторичного луча вдоль нормали, чтобы луч
    не пересёк ту же поверхность, из которой вышел.
    """
    if dot(direction, normal) < 0.0:
        return point - normal * epsilon
    return point + normal * epsilon


@njit(cache=True)
def is_finite_color(color):
    """Проверка, что все три канала цвета конечны (без NaN и inf)."""
    return np.isfinite(color[0]) and np.isfinite(color[1]) and np.isfinite(color[2])


@njit
def random_in_unit_sphere(rng):
    """Случайная точка внутри единичной сферы (метод отбора)."""
    p = np.zeros(3)
    d = 0.0
    while d <= 1e-12 or d >= 1.0:
        p = np.array([
            2.0 * rng.random() - 1.0,
            2.0 * rng.random() - 1.0,
            2.0 * rng.random() - 1.0
        ])
        d = dot(p, p)
    return p


@njit
def random_unit_vector(rng):
    """Случайное направление, равномерно распределённое по единичной сфере."""
    return normalize(random_in_unit_sphere(rng))
