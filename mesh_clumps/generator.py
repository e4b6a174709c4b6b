"""
Clump generation following Ferellec and McDowell (2010).

Vertices are visited in a random order. A vertex lying closer than
min_separation to an existing sphere is skipped; otherwise a tangent sphere
is grown from it along its inward normal. Generation stops as soon as the
number of spheres reaches target_coverage times the number of vertices.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
from tqdm import tqdm

from .clump import Clump, Sphere, separation
from .config import DEFAULT_CONFIG, GenerationParameters
from .errors import GrowthError
from .grower import TangentSphereGrower
from .mesh import Mesh, load_mesh
from .sampler import VertexSampler

logger = logging.getLogger(__name__)


class ClumpGenerator:
    """
    Generates a clump of tangent spheres from a particle surface mesh.

    Example:
        generator = ClumpGenerator({'min_radius': 0.01, 'radius_step': 0.001,
                                    'min_separation': 0.01, 'seed': 5})
        mesh, clump = generator.generate('particle.stl')
    """

    DEFAULT_CONFIG = DEFAULT_CONFIG

    def __init__(self, config: Optional[Union[Dict[str, Any], GenerationParameters]] = None):
        """
        Initialize generator with configuration.

        Args:
            config: Configuration dict merged over DEFAULT_CONFIG, or ready
                GenerationParameters.

        Raises:
            ParameterError: if a parameter is out of range
        """
        if isinstance(config, GenerationParameters):
            self.params = config.validate()
        else:
            self.params = GenerationParameters.from_config(config)

    def generate(self, source) -> Tuple[Mesh, Clump]:
        """
        Load the input geometry, generate the clump, then export and plot
        it if configured.

        Args:
            source: A Mesh, or any input accepted by mesh.load_mesh()

        Returns:
            (mesh, clump)
        """
        params = self.params
        if isinstance(source, Mesh):
            mesh = source.centered() if params.center_on_centroid else source
        else:
            mesh = load_mesh(source, center=params.center_on_centroid)

        clump = self.generate_from_mesh(mesh)

        if params.output:
            clump.save(params.output)
            logger.info(f'Clump written to {Path(params.output).absolute()}')

        if params.visualize:
            from .visualization import visualize_clump
            visualize_clump(clump, mesh, show=True)

        return mesh, clump

    def generate_from_mesh(self, mesh: Mesh) -> Clump:
        """
        Run the sphere placement loop on an oriented mesh.

        Args:
            mesh: Mesh with inward vertex normals

        Returns:
            Clump with spheres in acceptance order and run statistics in
            its metadata
        """
        params = self.params
        num_vertices = mesh.num_vertices
        sampler = VertexSampler(num_vertices, params.seed)
        grower = TangentSphereGrower(mesh.vertices, params.min_radius,
                                     params.radius_step, params.max_radius)

        logger.info(f'Generating clump: {num_vertices} vertices, '
                    f'dmin={params.min_separation}, rmin={params.min_radius}, '
                    f'rstep={params.radius_step}, pmax={params.target_coverage}, '
                    f'seed={params.seed}')

        clump = Clump()
        # At most one sphere per vertex
        positions = np.empty((num_vertices, 3))
        radii = np.empty(num_vertices)
        count = 0
        visited = skipped = failed = 0

        progress = tqdm(sampler.order(), desc='Growing spheres', unit='vertex',
                        disable=not params.show_progress)
        for index in progress:
            index = int(index)
            visited += 1
            point = mesh.vertices[index]

            if count > 0 and params.min_separation > 0:
                distance = separation(point, positions[:count], radii[:count])
                if distance < params.min_separation:
                    skipped += 1
                    logger.debug(f'Vertex {index} skipped: {distance:.6g} from existing spheres')
                    continue

            try:
                result = grower.grow(point, mesh.normals[index], vertex_index=index)
            except GrowthError as e:
                if params.on_growth_failure == 'raise':
                    raise
                failed += 1
                logger.warning(f'{e} Vertex skipped.')
                continue

            positions[count] = result.center
            radii[count] = result.radius
            count += 1
            clump.append(Sphere(center=result.center, radius=result.radius,
                                vertex_index=index))

            if count / num_vertices >= params.target_coverage:
                break
        progress.close()

        clump.metadata.update({
            'method': 'ferellec_mcdowell',
            'config': params.to_dict(),
            'tolerance': grower.tolerance,
            'num_vertices': num_vertices,
            'num_visited': visited,
            'num_skipped': skipped,
            'num_failed': failed,
            'coverage': count / num_vertices,
            **clump.summary(),
        })
        if mesh.rigid_body is not None:
            clump.metadata['mesh'] = mesh.rigid_body.to_dict()

        if count:
            logger.info(f'Generated {count} spheres from {visited} visited vertices '
                        f'({skipped} skipped, {failed} failed), radius range '
                        f'{clump.min_radius:.6g} to {clump.max_radius:.6g}')
        else:
            logger.warning(f'No spheres generated from {visited} visited vertices')
        return clump


def generate_clump(source, **config) -> Tuple[Mesh, Clump]:
    """Shortcut for ClumpGenerator(config).generate(source)."""
    return ClumpGenerator(config).generate(source)
