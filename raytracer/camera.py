"""
Точечная (pinhole) камера для рендеринга.
"""

import numpy as np
from numba import njit
from .math_utils import normalize, cross

# Угол обзора по умолчанию для каждого режима: 90 градусов дают экран высотой 2
DEFAULT_FOV = {
    'whitted': 60.0,
    'path': 90.0,
}


class Camera:
    """
    Точечная камера.

    Параметры:
        position: позиция камеры в пространстве
        look_at: точка, на которую смотрит камера
        up: вектор "вверх" (обычно [0, 1, 0])
        fov: угол обзора по вертикали в градусах
        width, height: размер изображения в пикселях
    """

    def __init__(self, position=(0.0, 0.0, 0.0), look_at=(0.0, 0.0, -1.0),
                 up=(0.0, 1.0, 0.0), fov=60.0, width=640, height=400):
        if width <= 0 or height <= 0:
            raise ValueError(f"image size must be positive, got {width}x{height}")
        if not 0 < fov < 180:
            raise ValueError(f"field of view must be in (0, 180) degrees, got {fov}")

        self.position = np.array(position, dtype=np.float64)
        self.width = int(width)
        self.height = int(height)

        # Вычисляем базис камеры (forward, right, up)
        self.forward = normalize(np.array(look_at, dtype=np.float64) - self.position)
        self.right = normalize(cross(self.forward, np.array(up, dtype=np.float64)))
        self.up = cross(self.right, self.forward)

        # Размер виртуального экрана на фокусном расстоянии 1 (зависит от FOV)
        aspect = width / height
        self.half_height = np.tan(fov * np.pi / 360.0)
        self.half_width = self.half_height * aspect

    @classmethod
    def from_config(cls, config: dict):
        mode = config.get('mode', 'whitted')
        return cls(
            position=config.get('camera_position', [0.0, 0.0, 0.0]),
            look_at=config.get('camera_look_at', [0.0, 0.0, -1.0]),
            up=config.get('camera_up', [0.0, 1.0, 0.0]),
            fov=config.get('fov', DEFAULT_FOV.get(mode, 60.0)),
            width=config.get('width', 640),
            height=config.get('height', 400),
        )

    def params(self):
        """Параметры камеры в порядке аргументов get_ray (после px, py)."""
        return (self.width, self.height, self.position, self.forward,
                self.right, self.up, self.half_width, self.half_height)

    def ray(self, px, py):
        """Луч через точку (px, py) в пиксельных координатах."""
        return get_ray(float(px), float(py), *self.params())


@njit(cache=True)
def get_ray(px, py, width, height, position, forward, right, up,
            half_width, half_height):
    """
    Генерирует луч из камеры через точку (px, py) экрана.

    Параметры:
        px, py: пиксельные координаты; центр пикселя (x, y) - это
            (x + 0.5, y + 0.5), для антиалиасинга добавляется случайное
            смещение в [0, 1)

    Строка 0 - верх изображения (максимальный Y в мире).

    Возвращает:
        (origin, direction) - начало и направление луча
    """
    # Нормализованные координаты экрана [-1, 1]
    u = (2.0 * px / width - 1.0) * half_width
    v = (1.0 - 2.0 * py / height) * half_height

    # Направление луча
    direction = normalize(forward + right * u + up * v)

    return position.copy(), direction
