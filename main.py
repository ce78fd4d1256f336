"""
Точка входа: размерные цепочки для видов снимка BIM-модели.

Использование:
    python main.py <scene.json> [--views VIEW ...] [--config CONFIG]
                   [--svg DIR] [--dxf PATH] [--json PATH]

Пример:
    python main.py "project.json"                          # все виды
    python main.py "project.json" --views "Level 1" --svg previews
    python main.py "project.json" --dxf chains.dxf --json report.json
    python main.py "project.json" --views "Level 1" --pick 0 5 20 5 --pick 5 -1 5 12
    python main.py --init-config                           # .autodim.json

Код возврата: 0 — создана хотя бы одна цепочка, 1 — цепочек нет или
ошибка входных данных, 2 — непредвиденная ошибка.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Обеспечить поддержку Unicode на Windows-консоли
if sys.stdout.encoding and sys.stdout.encoding.lower() not in ('utf-8', 'utf8'):
    sys.stdout.reconfigure(encoding='utf-8', errors='replace')
if sys.stderr.encoding and sys.stderr.encoding.lower() not in ('utf-8', 'utf8'):
    sys.stderr.reconfigure(encoding='utf-8', errors='replace')

from autodim.batch import BatchResult, process_scene
from autodim.chains.interactive import build_interactive_chain
from autodim.export.dxf_writer import DxfChainWriter
from autodim.export.svg_preview import SvgPreviewPlacement
from autodim.logging_config import setup_logging
from autodim.placement import CompositePlacement, DimensionPlacement, RecordingPlacement
from autodim.project_config import (
    CONFIG_FILENAME,
    create_sample_config,
    load_config,
    merge_configs,
)
from autodim.provider import Scene, SceneLoadError, load_scene

logger = logging.getLogger("autodim.cli")


# ---------------------------------------------------------------------------
# Потребители
# ---------------------------------------------------------------------------

def build_consumers(svg_dir: Optional[str], dxf_file: Optional[str]):
    """Собрать потребителей цепочек по запрошенным выходам.

    Returns:
        (потребитель для конвейера, список всех потребителей).
    """
    consumers: List[RecordingPlacement] = []
    if svg_dir:
        consumers.append(SvgPreviewPlacement())
    if dxf_file:
        consumers.append(DxfChainWriter())
    if not consumers:
        consumers.append(RecordingPlacement())
    consumer: DimensionPlacement = consumers[0] if len(consumers) == 1 else CompositePlacement(consumers)
    return consumer, consumers


def save_outputs(consumers, svg_dir: Optional[str], dxf_file: Optional[str]) -> None:
    for consumer in consumers:
        if svg_dir and isinstance(consumer, SvgPreviewPlacement):
            consumer.save(svg_dir)
        if dxf_file and isinstance(consumer, DxfChainWriter):
            consumer.save(dxf_file)


# ---------------------------------------------------------------------------
# Режимы
# ---------------------------------------------------------------------------

def run_pick(scene: Scene, view_names: Optional[List[str]], picks: List[List[float]],
             settings, consumer: DimensionPlacement) -> int:
    """Интерактивные цепочки по линиям-указателям в одном виде.

    Каждая линия даёт свою цепочку; промах или отказ потребителя по одной
    линии не прерывает обработку остальных.

    Returns:
        Число созданных цепочек.
    """
    if view_names and len(view_names) != 1:
        raise ValueError("--pick requires exactly one view (--views NAME)")
    if view_names:
        view = scene.view(view_names[0])
        if view is None:
            raise KeyError(f"View not found in scene: {view_names[0]}")
    elif scene.views:
        view = scene.views[0]
    else:
        raise ValueError("Scene has no views")

    created = 0
    for index, pick in enumerate(picks, 1):
        start2d, end2d = pick[:2], pick[2:]
        chain = build_interactive_chain(scene.provider, view, start2d, end2d, settings)
        if chain is None:
            print(f"{view.name} [{index}/{len(picks)}]: линия-указатель не пересекает "
                  f"двух подходящих элементов")
            continue
        if not consumer.place(chain):
            print(f"{view.name} [{index}/{len(picks)}]: цепочка отклонена потребителем")
            continue
        created += 1
        print(f"{view.name} [{index}/{len(picks)}]: создана цепочка из "
              f"{len(chain.references)} ссылок, "
              f"размеры: {', '.join(f'{v:.2f}' for v in chain.segment_values)}")

    logger.info("Interactive chains created: %d of %d", created, len(picks))
    return created


def run(args: argparse.Namespace) -> int:
    config = load_config(scene_path=args.scene_file, explicit_config=args.config)
    config = merge_configs(config, _cli_overrides(args))
    settings = config.to_settings()

    svg_dir = args.svg or config.output.svg_dir or None
    dxf_file = args.dxf or config.output.dxf_file or None
    json_report = args.json or config.output.json_report or None

    scene = load_scene(args.scene_file)
    consumer, consumers = build_consumers(svg_dir, dxf_file)

    if args.pick is not None:
        created = run_pick(scene, args.views, args.pick, settings, consumer)
        save_outputs(consumers, svg_dir, dxf_file)
        return 0 if created else 1

    result: BatchResult = process_scene(scene, settings, consumer, view_names=args.views)
    save_outputs(consumers, svg_dir, dxf_file)

    print(result.summary())
    if json_report:
        path = Path(json_report)
        path.write_text(json.dumps(result.to_dict(), indent=2, ensure_ascii=False), encoding='utf-8')
        logger.info("JSON report saved: %s", path)

    return 0 if result.total_chains > 0 else 1


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    """Только явно заданные параметры командной строки, по секциям конфига."""
    features: Dict[str, Any] = {}
    placement: Dict[str, Any] = {}
    if args.reference_type:
        features["reference_type"] = args.reference_type
    if args.offset is not None:
        placement["default_offset"] = args.offset
    if args.no_grids:
        features["include_grids"] = False
    if args.no_levels:
        features["include_levels"] = False
    if args.no_curtain_walls:
        features["include_curtain_walls"] = False
    if args.no_mullions:
        features["include_mullions"] = False
    if args.no_nudge:
        placement["nudge_chains"] = False
    return {"features": features, "placement": placement}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Автоматические размерные цепочки для видов снимка модели.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "scene_file",
        nargs="?",
        help="Путь к JSON-снимку модели (виды, элементы, выбор).",
    )
    parser.add_argument(
        "--views",
        nargs="+",
        default=None,
        help="Имена видов для обработки (по умолчанию: все виды снимка).",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help=f"Путь к конфигурационному файлу {CONFIG_FILENAME}.",
    )
    parser.add_argument(
        "--svg",
        default=None,
        metavar="DIR",
        help="Каталог для SVG-превью (по файлу на вид).",
    )
    parser.add_argument(
        "--dxf",
        default=None,
        metavar="PATH",
        help="Путь к выходному DXF-файлу.",
    )
    parser.add_argument(
        "--json",
        default=None,
        metavar="PATH",
        help="Путь к JSON-отчёту по видам.",
    )
    parser.add_argument(
        "--pick",
        action="append",
        nargs=4,
        type=float,
        default=None,
        metavar=("X1", "Y1", "X2", "Y2"),
        help="Линия-указатель в координатах вида: по цепочке на каждую "
             "(ключ можно повторять).",
    )
    parser.add_argument(
        "--reference-type",
        default=None,
        dest="reference_type",
        help="Тип ссылки: centerline, exterior_face, interior_face, auto.",
    )
    parser.add_argument(
        "--offset",
        type=float,
        default=None,
        help="Смещение размерной линии от центра группы.",
    )
    parser.add_argument("--no-grids", action="store_true", dest="no_grids",
                        help="Не включать оси.")
    parser.add_argument("--no-levels", action="store_true", dest="no_levels",
                        help="Не включать уровни (разрезы и фасады).")
    parser.add_argument("--no-curtain-walls", action="store_true", dest="no_curtain_walls",
                        help="Не включать витражные стены.")
    parser.add_argument("--no-mullions", action="store_true", dest="no_mullions",
                        help="Не включать импосты и линии сетки витража.")
    parser.add_argument("--no-nudge", action="store_true", dest="no_nudge",
                        help="Не сдвигать цепочки после создания.")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Подробный вывод (DEBUG).",
    )
    parser.add_argument(
        "--log-json",
        default=None,
        dest="log_json",
        metavar="PATH",
        help="Файл журнала в формате JSON lines.",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        dest="init_config",
        help=f"Создать пример {CONFIG_FILENAME} в текущем каталоге и выйти.",
    )
    args = parser.parse_args(argv)
    if not args.init_config and not args.scene_file:
        parser.error("scene_file is required")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_file=args.log_json,
        console=True,
    )

    if args.init_config:
        create_sample_config(CONFIG_FILENAME)
        return 0

    try:
        return run(args)
    except SceneLoadError as exc:
        logger.critical("Ошибка загрузки снимка: %s", exc)
        return 1
    except (ValueError, KeyError) as exc:
        logger.critical("Ошибка параметров: %s", exc)
        return 1
    except Exception as exc:
        logger.critical("Неожиданная ошибка: %s", exc, exc_info=True)
        return 2


if __name__ == "__main__":
    sys.exit(main())
