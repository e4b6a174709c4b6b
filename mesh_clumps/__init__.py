"""
Mesh to Clump Generation Library

Approximates a particle, given as a surface mesh or voxel image, with a
clump of tangent spheres for discrete element simulation (Ferellec and
McDowell, 2010).
"""

from .clump import Clump, Sphere, separation
from .config import DEFAULT_CONFIG, GenerationParameters, load_config
from .errors import ClumpError, GrowthError, InvalidInputError, ParameterError
from .generator import ClumpGenerator, generate_clump
from .grower import GrowthResult, TangentSphereGrower, potential
from .mesh import (
    Mesh,
    MeshFile,
    MeshRecord,
    RigidBodyParams,
    TriangulationRecord,
    VoxelFile,
    VoxelRecord,
    as_source,
    load_mesh,
)
from .sampler import VertexSampler

__all__ = [
    'ClumpGenerator',
    'generate_clump',
    'separation',
    'Clump',
    'Sphere',
    'DEFAULT_CONFIG',
    'GenerationParameters',
    'load_config',
    'ClumpError',
    'GrowthError',
    'InvalidInputError',
    'ParameterError',
    'GrowthResult',
    'TangentSphereGrower',
    'potential',
    'Mesh',
    'MeshFile',
    'MeshRecord',
    'RigidBodyParams',
    'TriangulationRecord',
    'VoxelFile',
    'VoxelRecord',
    'as_source',
    'load_mesh',
    'VertexSampler',
]

__version__ = '1.0.0'
