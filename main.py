"""
Точка входа: автоматическая ориентация STL-модели для 3D-печати.

Использование:
    python main.py <stl_file> [--output OUTPUT] [--config CONFIG]

Пример:
    python main.py "bracket.stl" --output "bracket_oriented.stl"
    python main.py "bracket.stl" --overhang-angle 45 --report result.json
    python main.py "bracket.stl" --config project.orient.json     # с конфигом
    python main.py --init-config                                   # пример .orient.json
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from auto_orient.io.stl_loader import STLLoadError
from auto_orient.logging_config import setup_logging
from auto_orient.pipeline import run_pipeline
from auto_orient.project_config import CONFIG_FILENAME, create_sample_config, load_config

logger = logging.getLogger("auto_orient.main")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Автоматический выбор ориентации STL-модели для 3D-печати.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "stl_file",
        nargs="?",
        help="Путь к входному STL-файлу.",
    )
    parser.add_argument(
        "--output", "-o",
        default=None,
        help="Путь к выходному STL-файлу (по умолчанию: <имя>_oriented.stl рядом с входным).",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help=f"Путь к конфигурационному файлу {CONFIG_FILENAME}.",
    )
    parser.add_argument(
        "--overhang-angle", "-a",
        type=float,
        default=None,
        dest="overhang_angle",
        help="Угол нависания в градусах (по умолчанию: 60).",
    )
    parser.add_argument(
        "--legacy-cost",
        action="store_true",
        dest="legacy_cost",
        help="Старая площадная целевая функция вместо минимизации объёма поддержек.",
    )
    parser.add_argument(
        "--report", "-r",
        default=None,
        help="Записать результат ориентации в JSON-файл.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        dest="dry_run",
        help="Только вычислить ориентацию, не записывая STL.",
    )
    parser.add_argument(
        "--log-json",
        default=None,
        dest="log_json",
        help="Дублировать лог в JSON-файл.",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        dest="init_config",
        help=f"Создать пример {CONFIG_FILENAME} в текущем каталоге и выйти.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Подробный лог (стоимость каждого кандидата).",
    )
    args = parser.parse_args(argv)
    if not args.stl_file and not args.init_config:
        parser.error("требуется stl_file")
    return args


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    setup_logging(
        level=logging.DEBUG if args.verbose else logging.INFO,
        json_file=args.log_json,
    )

    if args.init_config:
        create_sample_config(CONFIG_FILENAME)
        return 0

    output = None
    if not args.dry_run:
        output = args.output or str(Path(args.stl_file).with_name(
            Path(args.stl_file).stem + "_oriented.stl"))

    try:
        config = load_config(stl_path=args.stl_file, explicit_config=args.config)
        params = config.orientation
        if args.overhang_angle is not None:
            params = params.with_overrides(overhang_angle=args.overhang_angle)
        if args.legacy_cost:
            params = params.with_overrides(min_volume=False)

        run_pipeline(
            args.stl_file,
            output,
            params=params,
            report_path=args.report,
        )
    except STLLoadError as exc:
        logger.critical("Ошибка загрузки STL: %s", exc)
        return 1
    except ValueError as exc:
        logger.critical("Ошибка конфигурации: %s", exc)
        return 1
    except Exception as exc:
        logger.critical("Неожиданная ошибка: %s", exc, exc_info=True)
        return 2

    if output:
        logger.info("Готово. STL: %s", output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
