"""
Глобальные константы движка размерных цепочек.

Все длины — в футах (единицы модели хоста), если не указано иное.
Значения по умолчанию для настраиваемых допусков дублируются в
DimensionSettings (project_config), остальные — фиксированные параметры
алгоритма.
"""

# ---------------------------------------------------------------------------
# Проецирование
# ---------------------------------------------------------------------------

# Минимальная длина 2D-проекции, ниже которой направление считается вырожденным
MIN_PROJECTED_LENGTH = 1e-3

# Порог |dir · normal| для «почти перпендикулярных» элементов (cos 45° ≈ 0.707)
MOSTLY_PERPENDICULAR_DOT = 0.7

# Знаменатель, ниже которого прямая считается параллельной плоскости вида
PLANE_PARALLEL_EPS = 1e-10

# Точность обратного преобразования вид → 3D
ROUND_TRIP_EPS = 1e-6

# ---------------------------------------------------------------------------
# Допуски группировки (значения по умолчанию)
# ---------------------------------------------------------------------------

PARALLEL_TOLERANCE = 0.05          # |cross| ≈ 3°
PERPENDICULAR_TOLERANCE = 0.1
COLLINEARITY_TOLERANCE = 0.01
STRUCTURAL_TOLERANCE = 0.05        # ≈ 15 мм
GRID_TOLERANCE = 0.005             # ≈ 1.5 мм
CURTAIN_WALL_TOLERANCE = 0.008     # ≈ 2.5 мм

# ---------------------------------------------------------------------------
# Размерная линия
# ---------------------------------------------------------------------------

DEFAULT_OFFSET = 1.64              # ≈ 0.5 м
MIN_CHAIN_SPAN = 1.0
AUTO_EXTENSION = 1.97              # выступ концов для автоматического режима
PICK_MIN_OFFSET = 3.0              # минимальный отступ от линии-указателя
PICK_MIN_EXTENSION = 3.0
PICK_EXTENSION_RATIO = 0.1
MIN_DIMENSION_LINE_LENGTH = 0.1    # ≈ 1 дюйм
NUDGE_DISTANCE = 0.0328084         # 10 мм

# ---------------------------------------------------------------------------
# Интерактивный режим (линия-указатель)
# ---------------------------------------------------------------------------

PICK_PERPENDICULAR_DOT = 0.5       # |dir · axis| < 0.5 → элемент поперёк цепочки
PICK_COLLINEAR_AREA = 0.1
PICK_POINT_TOLERANCE = 0.5         # радиус захвата точечных элементов
LEVEL_PICK_HALF_LENGTH = 1000.0
SEGMENT_PARALLEL_EPS = 1e-10

# Ключевые слова категорий (сравнение в нижнем регистре)
STRUCTURAL_KEYWORDS = ("structural", "beam", "column", "wall")
CURTAIN_KEYWORDS = ("curtain", "mullion", "panel")
FITTING_KEYWORDS = ("fitting", "accessory", "insulation")
STRUCTURAL_WALL_TYPE_KEYWORDS = ("structural", "bearing", "shear")

# Категории, не участвующие в интерактивном режиме
PICK_EXCLUDED_KEYWORDS = FITTING_KEYWORDS + ("tag",)
