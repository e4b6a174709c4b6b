#!/usr/bin/env python3
"""
Generate a clump of spheres from a particle mesh or voxel image.
"""

import json
import logging
import sys
import time
from pathlib import Path

# Add repository root to path for imports
script_dir = Path(__file__).parent
repo_dir = script_dir.parent
if str(repo_dir) not in sys.path:
    sys.path.insert(0, str(repo_dir))

from mesh_clumps import ClumpError, ClumpGenerator, load_config
from mesh_clumps.logging_config import setup_logging


def build_config(args) -> dict:
    """Merge the optional YAML config with the options given on the command line."""
    config = load_config(args.config) if args.config else {}
    overrides = {
        'min_separation': args.dmin,
        'min_radius': args.rmin,
        'radius_step': args.rstep,
        'target_coverage': args.pmax,
        'seed': args.seed,
        'output': args.output,
    }
    config.update({k: v for k, v in overrides.items() if v is not None})
    if args.visualize:
        config['visualize'] = True
    if args.center:
        config['center_on_centroid'] = True
    if args.progress:
        config['show_progress'] = True
    if args.strict:
        config['on_growth_failure'] = 'raise'
    return config


def print_summary(input_path: str, mesh, clump, elapsed: float):
    print("=" * 70)
    print(f"Input:          {input_path}")
    print(f"Vertices:       {mesh.num_vertices}")
    print(f"Spheres:        {clump.num_spheres}")
    print(f"Skipped:        {clump.metadata['num_skipped']}")
    print(f"Failed:         {clump.metadata['num_failed']}")
    print(f"Coverage:       {clump.metadata['coverage']:.1%}")
    if clump.num_spheres:
        print(f"Min radius:     {clump.min_radius:.6f} (sphere {clump.min_index})")
        print(f"Max radius:     {clump.max_radius:.6f} (sphere {clump.max_index})")
    if mesh.rigid_body is not None:
        print(f"Mesh volume:    {mesh.rigid_body.volume:.6f}")
        print(f"Mesh centroid:  {mesh.rigid_body.centroid}")
    print(f"Time:           {elapsed:.2f}s")
    print("=" * 70)


def main():
    """Command-line interface."""
    import argparse

    parser = argparse.ArgumentParser(
        description='Generate a clump of tangent spheres from a particle mesh (Ferellec & McDowell)'
    )
    parser.add_argument(
        'input',
        help='Surface mesh (.stl, .obj, .ply, ...) or voxel image (.mat, .npz, .npy)'
    )
    parser.add_argument('--config', default=None, help='YAML file with generation parameters')
    parser.add_argument('--dmin', type=float, default=None,
                        help='Minimum distance between a new vertex and existing spheres (0 disables)')
    parser.add_argument('--rmin', type=float, default=None,
                        help='Starting radius of every sphere search')
    parser.add_argument('--rstep', type=float, default=None,
                        help='Radius increment per search iteration')
    parser.add_argument('--pmax', type=float, default=None,
                        help='Fraction of vertices (0-1] used to generate spheres')
    parser.add_argument('--seed', type=int, default=None, help='Seed for reproducible clumps')
    parser.add_argument('-o', '--output', default=None, help='Output text file (x,y,z,r per line)')
    parser.add_argument('--summary', default=None, help='Optional JSON file for run metadata')
    parser.add_argument('--center', action='store_true',
                        help='Translate the particle to its centroid before generation')
    parser.add_argument('--strict', action='store_true',
                        help='Abort when a sphere cannot be grown instead of skipping the vertex')
    parser.add_argument('--progress', action='store_true', help='Show a progress bar')
    parser.add_argument('--visualize', action='store_true', help='Plot the mesh and clump')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])

    args = parser.parse_args()
    setup_logging(getattr(logging, args.log_level))

    try:
        generator = ClumpGenerator(build_config(args))
        start_time = time.time()
        mesh, clump = generator.generate(args.input)
    except ClumpError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    elapsed = time.time() - start_time

    print_summary(args.input, mesh, clump, elapsed)

    if args.summary:
        with open(args.summary, 'w') as f:
            json.dump(clump.metadata, f, indent=2)
        print(f"Summary saved to: {args.summary}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
