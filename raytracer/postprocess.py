"""
Постобработка: ограничение яркости, гамма-коррекция, квантование
в 8-битный RGBA буфер и сохранение изображений.
"""

import numpy as np
from PIL import Image


def soft_clip(image):
    """
    Мягкое ограничение (режим Уиттеда): если максимум из каналов
    пикселя больше 1, все три канала делятся на этот максимум.
    Оттенок сохраняется, меняется только яркость.
    """
    image = np.array(image, dtype=np.float64)
    peak = image.max(axis=-1, keepdims=True)
    scale = np.where(peak > 1.0, peak, 1.0)
    return image / scale


def gamma_correct(image, samples=1):
    """
    Усреднение по сэмплам и гамма-коррекция с гаммой 2:
    V_corr = sqrt(V / samples).
    """
    image = np.clip(np.asarray(image, dtype=np.float64) / samples, 0.0, None)
    return np.sqrt(image)


def hard_clamp(image, low=0.0, high=0.999):
    """Жёсткое ограничение каждого канала независимо (режим path tracing)."""
    return np.clip(image, low, high)


def to_rgba8(image):
    """
    Квантование в 8 бит: умножение на 255 и отбрасывание дробной части.
    Возвращает массив (height, width, 4) uint8, альфа = 255.
    """
    height, width = image.shape[:2]
    rgba = np.full((height, width, 4), 255, dtype=np.uint8)
    rgba[..., :3] = (np.clip(image, 0.0, 1.0) * 255).astype(np.uint8)
    return rgba


def finish_whitted(image):
    """HDR кадр режима Уиттеда -> RGBA буфер."""
    return to_rgba8(soft_clip(image))


def finish_path(image, samples=1):
    """
    Накопленная сумма сэмплов path tracing -> RGBA буфер.

    image: сумма (или уже среднее при samples=1) по сэмплам пикселя
    """
    return to_rgba8(hard_clamp(gamma_correct(image, samples)))


def save_ppm(filename, buffer):
    """
    Сохранение в формате PPM (P3 - текстовый).

    Формат PPM:
    - P3 - магическое число (текстовый RGB)
    - ширина высота
    - максимальное значение (255)
    - RGB значения пикселей (альфа-канал отбрасывается)
    """
    height, width = buffer.shape[:2]

    with open(filename, 'w') as f:
        f.write(f"P3\n{width} {height}\n255\n")
        for y in range(height):
            row = []
            for x in range(width):
                r, g, b = buffer[y, x, :3]
                row.append(f"{r} {g} {b}")
            f.write(" ".join(row) + "\n")

    print(f"Сохранено: {filename}")


def save_png(filename, buffer):
    """Сохранение RGBA буфера в формате PNG."""
    img = Image.fromarray(np.ascontiguousarray(buffer, dtype=np.uint8))
    img.save(filename)
    print(f"Сохранено: {filename}")
