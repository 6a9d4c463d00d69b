"""
Ray Tracer - синтез изображения сцены из сфер.

Два режима:
    whitted - рекурсивная трассировка лучей (отражение, преломление, тени),
              анимированная сцена, один луч на пиксель
    path    - трассировка путей Монте-Карло, статичный кадр,
              много сэмплов на пиксель

Запуск: python main.py
"""

import time
from raytracer.camera import Camera
from raytracer.scenes import create_scene
from raytracer.renderer import render_frames
from raytracer.postprocess import save_png, save_ppm


# ==================== КОНФИГУРАЦИЯ ====================
# Параметры можно изменить для получения разных результатов

CONFIG = {
    # --- Режим ---
    'mode': 'whitted',          # 'whitted' или 'path'

    # --- Параметры рендеринга ---
    'width': 640,               # ширина изображения
    'height': 400,              # высота изображения
    # 'max_depth': 4,           # глубина рекурсии; по умолчанию whitted - 4, path - 50
    'samples_per_pixel': 100,   # сэмплов на пиксель (только path)
    'seed': 0,                  # зерно генератора (только path)
    'far': 1000.0,              # дальше - фон

    # --- Камера ---
    'camera_position': [0, 0, 0],
    'camera_look_at': [0, 0, -1],
    # 'fov': 60,                # угол обзора (градусы); по умолчанию whitted - 60, path - 90

    # --- Цвета ---
    'background': [0.2, 0.7, 0.8],   # фон (только whitted)
    'fallback_color': [0, 0, 0],     # цвет для NaN/inf

    # --- Анимация (только whitted) ---
    'frames': 1,                # число кадров
    'frame_time_step': 1 / 30,  # шаг времени (секунды)

    # --- Вывод ---
    'output': 'result',         # префикс имени файла
    'save_ppm': False,

    'verbose': True,
}


def main():
    """Основная функция рендеринга."""

    print("=" * 60)
    print(f"Ray Tracer - режим {CONFIG['mode']}")
    print("=" * 60)

    # 1. Создаём сцену
    print("\n[1/3] Создание сцены...")
    scene = create_scene(CONFIG)

    # 2. Создаём камеру
    print("[2/3] Настройка камеры...")
    camera = Camera.from_config(CONFIG)

    # 3. Рендеринг и сохранение
    print(f"[3/3] Рендеринг {CONFIG['width']}x{CONFIG['height']}...")

    start_time = time.time()
    for frame, (t, buffer) in enumerate(render_frames(scene, camera, CONFIG)):
        elapsed = time.time() - start_time
        print(f"      Кадр {frame} (t = {t:.3f} с) за {elapsed:.1f} секунд")

        name = f"{CONFIG['output']}_{frame:03d}"
        save_png(f"{name}.png", buffer)
        if CONFIG['save_ppm']:
            save_ppm(f"{name}.ppm", buffer)
        start_time = time.time()

    print("\n" + "=" * 60)
    print("Готово!")
    print("=" * 60)


if __name__ == "__main__":
    main()
