"""
Сцена: хранение сфер, материалов и точечных источников света.
"""

from typing import NamedTuple, Optional

import numpy as np
from numba import njit
from .geometry import sphere_intersect, sphere_normal
from .math_utils import dot


# Дальняя граница: всё, что дальше, считается фоном
DEFAULT_FAR = 1000.0


class Material(NamedTuple):
    """
    Материал поверхности.

    albedo: веса (kd, ks, kr, kt) - диффузный, бликовый,
        отражённый и преломлённый вклад
    diffuse: диффузный цвет
    specular_exponent: показатель блеска (Фонг)
    refractive_index: показатель преломления
    """
    albedo: np.ndarray
    diffuse: np.ndarray
    specular_exponent: float
    refractive_index: float


class Sphere(NamedTuple):
    center: np.ndarray
    radius: float
    material_id: int


class Light(NamedTuple):
    position: np.ndarray
    intensity: float


class HitRecord(NamedTuple):
    """Результат поиска пересечения (нормаль направлена навстречу лучу)."""
    distance: float
    point: np.ndarray
    normal: np.ndarray
    material: Material
    front_face: bool


def _as_vector(value, what, size=3):
    """Приводит значение к float64 вектору, проверяя размер и конечность."""
    v = np.array(value, dtype=np.float64)
    if v.shape != (size,):
        raise ValueError(f"{what}: expected {size} components, got {v.shape}")
    if not np.all(np.isfinite(v)):
        raise ValueError(f"{what}: components must be finite, got {v.tolist()}")
    return v


class Scene:
    """
    Контейнер для 3D сцены.

    Хранит:
        - Материалы (общие для нескольких сфер, ссылка по индексу)
        - Сферы
        - Точечные источники света

    Все параметры проверяются при добавлении, ошибочная сцена
    не доходит до трассировки.
    """

    def __init__(self, far: float = DEFAULT_FAR):
        if not far > 0:
            raise ValueError(f"far plane must be positive, got {far}")
        self.far = float(far)

        self._materials = []
        self._material_names = {}
        self._spheres = []
        self._lights = []

        # Финальные numpy массивы (создаются при compile())
        self.centers = None            # shape: (n_spheres, 3)
        self.radii = None              # shape: (n_spheres,)
        self.material_ids = None       # shape: (n_spheres,)

        self.albedo = None             # shape: (n_materials, 4)
        self.diffuse = None            # shape: (n_materials, 3)
        self.specular_exponent = None  # shape: (n_materials,)
        self.refractive_index = None   # shape: (n_materials,)

        self.light_positions = None    # shape: (n_lights, 3)
        self.light_intensities = None  # shape: (n_lights,)

    @property
    def materials(self):
        return tuple(self._materials)

    @property
    def spheres(self):
        return tuple(self._spheres)

    @property
    def lights(self):
        return tuple(self._lights)

    def add_material(self, albedo=(1.0, 0.0, 0.0, 0.0), diffuse=(0.5, 0.5, 0.5),
                     specular_exponent=1.0, refractive_index=1.0, name=None):
        """
        Добавляет материал.

        Параметры:
            albedo: веса (kd, ks, kr, kt); сумма может превышать 1
            diffuse: диффузный цвет
            specular_exponent: показатель блеска, > 0
            refractive_index: показатель преломления, >= 1
            name: необязательное имя для ссылок из описания сцены

        Возвращает индекс материала.
        """
        label = f"material {name!r}" if name is not None else "material"
        albedo = _as_vector(albedo, f"{label} albedo", size=4)
        diffuse = _as_vector(diffuse, f"{label} diffuse color")
        if not specular_exponent > 0:
            raise ValueError(f"{label}: specular exponent must be > 0, got {specular_exponent}")
        if not refractive_index >= 1:
            raise ValueError(f"{label}: refractive index must be >= 1, got {refractive_index}")
        if name is not None and name in self._material_names:
            raise ValueError(f"material {name!r} is already defined")

        self.centers = None
        self._materials.append(Material(
            albedo, diffuse, float(specular_exponent), float(refractive_index)
        ))
        idx = len(self._materials) - 1
        if name is not None:
            self._material_names[name] = idx
        return idx

    def material_index(self, name):
        """Индекс материала по имени."""
        try:
            return self._material_names[name]
        except KeyError:
            raise ValueError(f"unknown material {name!r}") from None

    def add_sphere(self, center, radius, material):
        """
        Добавляет сферу.

        material: индекс материала или его имя.
        """
        if isinstance(material, str):
            material_id = self.material_index(material)
        else:
            material_id = int(material)
            if not 0 <= material_id < len(self._materials):
                raise ValueError(f"unknown material index {material_id}")

        center = _as_vector(center, "sphere center")
        if not radius > 0:
            raise ValueError(f"sphere radius must be > 0, got {radius}")

        self.centers = None
        self._spheres.append(Sphere(center, float(radius), material_id))
        return len(self._spheres) - 1

    def add_light(self, position, intensity):
        """Добавляет точечный источник света."""
        position = _as_vector(position, "light position")
        if not intensity > 0:
            raise ValueError(f"light intensity must be > 0, got {intensity}")

        self.centers = None
        self._lights.append(Light(position, float(intensity)))
        return len(self._lights) - 1

    def set_sphere_center(self, index, center):
        """
        Перемещает сферу (анимация между кадрами).
        Скомпилированные массивы обновляются сразу.
        """
        center = _as_vector(center, "sphere center")
        self._spheres[index] = self._spheres[index]._replace(center=center)
        if self.centers is not None:
            self.centers[index] = center

    def compile(self, verbose=True):
        """
        Компилирует сцену в numpy массивы для быстрого доступа.
        Вызывать после добавления всей геометрии.
        """
        n_spheres = len(self._spheres)
        n_mats = len(self._materials)
        n_lights = len(self._lights)

        self.centers = np.zeros((n_spheres, 3), dtype=np.float64)
        self.radii = np.zeros(n_spheres, dtype=np.float64)
        self.material_ids = np.zeros(n_spheres, dtype=np.int64)
        for i, sphere in enumerate(self._spheres):
            self.centers[i] = sphere.center
            self.radii[i] = sphere.radius
            self.material_ids[i] = sphere.material_id

        # Материалы
        self.albedo = np.zeros((n_mats, 4), dtype=np.float64)
        self.diffuse = np.zeros((n_mats, 3), dtype=np.float64)
        self.specular_exponent = np.ones(n_mats, dtype=np.float64)
        self.refractive_index = np.ones(n_mats, dtype=np.float64)
        for i, mat in enumerate(self._materials):
            self.albedo[i] = mat.albedo
            self.diffuse[i] = mat.diffuse
            self.specular_exponent[i] = mat.specular_exponent
            self.refractive_index[i] = mat.refractive_index

        # Источники света
        self.light_positions = np.zeros((n_lights, 3), dtype=np.float64)
        self.light_intensities = np.zeros(n_lights, dtype=np.float64)
        for i, light in enumerate(self._lights):
            self.light_positions[i] = light.position
            self.light_intensities[i] = light.intensity

        if verbose:
            print(f"Сцена: {n_spheres} сфер, {n_mats} материалов, "
                  f"{n_lights} источников света")

    def ensure_compiled(self):
        if self.centers is None:
            self.compile(verbose=False)

    def intersect(self, origin, direction) -> Optional[HitRecord]:
        """Ближайшее пересечение луча со сценой или None."""
        self.ensure_compiled()
        t, point, normal, mat_id, front_face = intersect_scene(
            np.asarray(origin, dtype=np.float64),
            np.asarray(direction, dtype=np.float64),
            self.centers, self.radii, self.material_ids, self.far
        )
        if mat_id < 0:
            return None
        return HitRecord(t, point, normal, self._materials[mat_id], front_face)


@njit(cache=True)
def intersect_scene(ray_origin, ray_dir, centers, radii, material_ids, far):
    """
    Поиск ближайшего пересечения луча со сценой.

    Перебирает все сферы и находит ближайшее пересечение.
    Пересечения дальше far считаются промахом.

    Возвращает: (t, hit_point, normal, material_id, front_face)
        t: расстояние до пересечения (-1 если нет)
        hit_point: точка пересечения
        normal: нормаль, направленная навстречу лучу
        material_id: индекс материала (-1 если нет пересечения)
        front_face: True, если луч пришёл снаружи сферы
    """
    closest_t = np.inf
    hit_idx = -1

    # Перебираем все сферы
    for i in range(centers.shape[0]):
        t = sphere_intersect(ray_origin, ray_dir, centers[i], radii[i])
        if t >= 0.0 and t < closest_t:
            closest_t = t
            hit_idx = i

    # Нет пересечения
    if hit_idx < 0 or closest_t >= far:
        return -1.0, np.zeros(3), np.zeros(3), -1, False

    hit_point = ray_origin + ray_dir * closest_t
    normal = sphere_normal(hit_point, centers[hit_idx])

    # Ориентируем нормаль к источнику луча
    front_face = dot(ray_dir, normal) < 0.0
    if not front_face:
        normal = -normal

    return closest_t, hit_point, normal, material_ids[hit_idx], front_face
