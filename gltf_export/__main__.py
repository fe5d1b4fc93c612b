#!/usr/bin/env python3
"""
JSON scene description to glTF 2.0 converter.

Usage:
    python -m gltf_export scene.json [output.gltf|output.glb]

Output format is determined by file extension:
    .gltf - JSON document plus a sibling .bin buffer (default)
    .glb  - Binary glTF container
"""
import argparse
import logging
import os
import sys

from .errors import ExportError
from .scene_export import SceneExporter
from .scene_json import load_scene_file
from .settings import DEFAULT_BATCH_SIZE, ExportSettings

logger = logging.getLogger("gltf_export")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Convert a JSON scene description to glTF 2.0")
    parser.add_argument('input', help='input scene description (.json)')
    parser.add_argument('output', nargs='?',
                        help='output .gltf or .glb file (default: input name with .gltf)')
    parser.add_argument('--workers', type=int, default=None,
                        help='conversion threads (0 runs conversions inline)')
    parser.add_argument('--batch-size', type=int, default=DEFAULT_BATCH_SIZE,
                        help='elements per conversion batch')
    parser.add_argument('--compact', action='store_true', help='write JSON without indentation')
    parser.add_argument('--verbose', action='store_true', help='enable debug logging')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    output_file = args.output or os.path.splitext(args.input)[0] + ".gltf"
    print(f"Reading {args.input}")

    try:
        settings = ExportSettings(
            batch_size=args.batch_size,
            max_workers=args.workers,
            json_indent=None if args.compact else 2,
        )
        exporter = SceneExporter(settings)
        for name, objects in load_scene_file(args.input):
            exporter.add_scene(name, objects)
        document = exporter.save_to_file(output_file)
    except (ExportError, ValueError, OSError) as exc:
        logger.error("Export failed: %s", exc)
        return 1

    print(f"\nExported to {output_file}")
    print(f"  Scenes: {len(document.scenes)}")
    print(f"  Nodes: {len(document.nodes)}")
    print(f"  Meshes: {len(document.meshes)}")
    print(f"  Accessors: {len(document.accessors)}")
    print(f"  Buffer: {len(document.binary_blob)} bytes")
    return 0


if __name__ == "__main__":
    sys.exit(main())
