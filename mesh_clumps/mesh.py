"""
Mesh model and input geometry loading.

Every supported input (surface mesh file, voxel image file, in-memory mesh,
voxel image or triangulation) is described by one of the source classes
below. load_mesh() turns a source into a consistently oriented Mesh with
inward-pointing unit vertex normals and rigid-body properties.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
import trimesh
from scipy.io import loadmat
from skimage import measure

from .errors import InvalidInputError

logger = logging.getLogger(__name__)

MESH_SUFFIXES = ('.stl', '.obj', '.ply', '.off', '.glb', '.gltf')
VOXEL_SUFFIXES = ('.mat', '.npz', '.npy')


def _readonly(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class RigidBodyParams:
    """Mass properties of a closed mesh, assuming unit density."""
    centroid: np.ndarray
    volume: float
    inertia: np.ndarray            # 3x3 tensor about the centroid
    principal_inertia: np.ndarray  # principal moments
    principal_axes: np.ndarray     # one principal axis per row

    @classmethod
    def from_trimesh(cls, tm: trimesh.Trimesh) -> 'RigidBodyParams':
        return cls(
            centroid=np.array(tm.center_mass, dtype=float),
            volume=float(tm.volume),
            inertia=np.array(tm.moment_inertia, dtype=float),
            principal_inertia=np.array(tm.principal_inertia_components, dtype=float),
            principal_axes=np.array(tm.principal_inertia_vectors, dtype=float),
        )

    def translated(self, offset: np.ndarray) -> 'RigidBodyParams':
        return RigidBodyParams(
            centroid=self.centroid + offset,
            volume=self.volume,
            inertia=self.inertia,
            principal_inertia=self.principal_inertia,
            principal_axes=self.principal_axes,
        )

    def to_dict(self) -> dict:
        return {
            'centroid': self.centroid.tolist(),
            'volume': self.volume,
            'inertia': self.inertia.tolist(),
            'principal_inertia': self.principal_inertia.tolist(),
            'principal_axes': self.principal_axes.tolist(),
        }


@dataclass(frozen=True, eq=False)
class Mesh:
    """
    Read-only triangle mesh with one inward unit normal per vertex.

    Vertex indices are fixed at construction and stay valid for the whole
    generation run. Non-zero normals are rescaled to unit length.
    """
    vertices: np.ndarray
    faces: np.ndarray
    normals: np.ndarray
    rigid_body: Optional[RigidBodyParams] = None

    def __post_init__(self):
        vertices = np.array(self.vertices, dtype=float)
        if vertices.ndim != 2 or vertices.shape[1] != 3 or len(vertices) == 0:
            raise InvalidInputError(
                f'vertices must be a non-empty (N, 3) array, got shape {vertices.shape}')
        if not np.all(np.isfinite(vertices)):
            raise InvalidInputError('vertices contain non-finite coordinates')

        faces = np.array(self.faces, dtype=np.int64)
        if faces.size == 0:
            faces = faces.reshape(0, 3)
        if faces.ndim != 2 or faces.shape[1] != 3:
            raise InvalidInputError(f'faces must be an (M, 3) array, got shape {faces.shape}')
        if len(faces) and (faces.min() < 0 or faces.max() >= len(vertices)):
            raise InvalidInputError('faces reference vertices that do not exist')

        normals = np.array(self.normals, dtype=float)
        if normals.shape != vertices.shape:
            raise InvalidInputError(
                f'expected one normal per vertex {vertices.shape}, got {normals.shape}')
        lengths = np.linalg.norm(normals, axis=1)
        nonzero = lengths > 0
        normals[nonzero] /= lengths[nonzero, None]

        object.__setattr__(self, 'vertices', _readonly(vertices))
        object.__setattr__(self, 'faces', _readonly(faces))
        object.__setattr__(self, 'normals', _readonly(normals))

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def bounds(self) -> np.ndarray:
        """Axis aligned bounding box as [[xmin, ymin, zmin], [xmax, ymax, zmax]]."""
        return np.array([self.vertices.min(axis=0), self.vertices.max(axis=0)])

    @property
    def extent(self) -> float:
        """Length of the bounding box diagonal."""
        lower, upper = self.bounds
        return float(np.linalg.norm(upper - lower))

    def translated(self, offset) -> 'Mesh':
        offset = np.asarray(offset, dtype=float)
        return Mesh(
            vertices=self.vertices + offset,
            faces=self.faces,
            normals=self.normals,
            rigid_body=(self.rigid_body.translated(offset)
                        if self.rigid_body is not None else None),
        )

    def centered(self) -> 'Mesh':
        """Copy of the mesh translated so that its centroid is the origin."""
        if self.rigid_body is not None:
            centroid = self.rigid_body.centroid
        else:
            # No mass properties: fall back to the mean vertex
            centroid = self.vertices.mean(axis=0)
        return self.translated(-centroid)


# ----------------------------
# Input sources
# ----------------------------


@dataclass(frozen=True)
class MeshFile:
    """Surface mesh file (STL, OBJ, PLY, ...)."""
    path: Union[str, Path]

    def to_trimesh(self) -> trimesh.Trimesh:
        path = Path(self.path)
        if not path.is_file():
            raise InvalidInputError(f'Mesh file not found: {path}')
        try:
            # Files carry no meaningful vertex order; duplicated STL vertices are merged
            tm = trimesh.load_mesh(str(path))
        except (ValueError, KeyError, OSError) as e:
            raise InvalidInputError(f'Cannot read mesh file {path}: {e}') from e
        if not isinstance(tm, trimesh.Trimesh):
            raise InvalidInputError(f'{path} does not contain a triangle mesh')
        return tm


@dataclass(frozen=True, eq=False)
class VoxelRecord:
    """Binary voxel image with the edge length of one voxel."""
    img: Any
    voxel_size: Any = 1.0

    def spacing(self) -> np.ndarray:
        size = np.atleast_1d(np.asarray(self.voxel_size, dtype=float)).ravel()
        if size.size == 1:
            size = np.repeat(size, 3)
        if size.size != 3 or np.any(size <= 0):
            raise InvalidInputError(f'Invalid voxel size: {self.voxel_size}')
        return size

    def to_trimesh(self) -> trimesh.Trimesh:
        img = np.asarray(self.img)
        if img.ndim != 3:
            raise InvalidInputError(f'Voxel image must be 3D, got shape {img.shape}')
        spacing = self.spacing()

        # Pad with empty voxels so the extracted surface is closed
        padded = np.pad((img > 0).astype(np.float32), 1)
        try:
            verts, faces, _, _ = measure.marching_cubes(
                padded, level=0.5, spacing=tuple(spacing))
        except (ValueError, RuntimeError) as e:
            raise InvalidInputError(f'Cannot extract a surface from voxel image: {e}') from e

        verts = verts - spacing
        logger.debug(f'Extracted {len(verts)} vertices, {len(faces)} faces from '
                     f'{int((img > 0).sum())} voxels')
        return trimesh.Trimesh(vertices=verts, faces=faces)


@dataclass(frozen=True)
class VoxelFile:
    """Voxel image file: .mat (img and voxel_size fields), .npz or .npy."""
    path: Union[str, Path]

    def read(self) -> VoxelRecord:
        path = Path(self.path)
        if not path.is_file():
            raise InvalidInputError(f'Voxel file not found: {path}')
        suffix = path.suffix.lower()

        if suffix == '.npy':
            return VoxelRecord(img=np.load(path))
        if suffix == '.npz':
            with np.load(path) as data:
                if 'img' not in data:
                    raise InvalidInputError(f'{path} has no "img" array')
                voxel_size = data['voxel_size'] if 'voxel_size' in data else 1.0
                return VoxelRecord(img=data['img'], voxel_size=voxel_size)
        if suffix == '.mat':
            return self._read_mat(path)
        raise InvalidInputError(f'Not recognised voxel file format: {path}')

    @staticmethod
    def _read_mat(path: Path) -> VoxelRecord:
        data = loadmat(str(path), squeeze_me=True, struct_as_record=False)
        variables = {k: v for k, v in data.items() if not k.startswith('__')}
        if 'img' in variables:
            record = variables
        elif variables:
            # The first variable is a struct holding the image
            first = next(iter(variables.values()))
            record = {name: getattr(first, name) for name in ('img', 'voxel_size')
                      if hasattr(first, name)}
        else:
            record = {}
        if 'img' not in record or 'voxel_size' not in record:
            raise InvalidInputError(f'{path} must provide "img" and "voxel_size" fields')
        return VoxelRecord(img=record['img'], voxel_size=record['voxel_size'])

    def to_trimesh(self) -> trimesh.Trimesh:
        return self.read().to_trimesh()


def _triangles(vertices, faces) -> trimesh.Trimesh:
    vertices = np.asarray(vertices, dtype=float)
    faces = np.asarray(faces)
    if vertices.ndim != 2 or vertices.shape[1] != 3:
        raise InvalidInputError(f'vertices must be an (N, 3) array, got shape {vertices.shape}')
    if faces.ndim != 2 or faces.shape[1] != 3:
        raise InvalidInputError(f'faces must be an (M, 3) array, got shape {faces.shape}')
    if not np.all(np.isfinite(vertices)):
        raise InvalidInputError('vertices contain non-finite coordinates')
    if faces.size and (faces.min() < 0 or faces.max() >= len(vertices)):
        raise InvalidInputError(
            f'faces reference vertices outside [0, {len(vertices)})')
    # process=False keeps the caller's vertex indices
    return trimesh.Trimesh(vertices=vertices, faces=faces.astype(np.int64), process=False)


@dataclass(frozen=True, eq=False)
class MeshRecord:
    """In-memory surface mesh."""
    vertices: Any
    faces: Any

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> 'MeshRecord':
        """Accepts either 'vertices'/'faces' or 'Vertices'/'Faces' keys."""
        vertices = mapping.get('vertices', mapping.get('Vertices'))
        faces = mapping.get('faces', mapping.get('Faces'))
        if vertices is None or faces is None:
            raise InvalidInputError('Mesh mapping needs vertices and faces')
        return cls(vertices=vertices, faces=faces)

    def to_trimesh(self) -> trimesh.Trimesh:
        return _triangles(self.vertices, self.faces)


@dataclass(frozen=True, eq=False)
class TriangulationRecord:
    """In-memory triangulation given as points and a connectivity list."""
    points: Any
    connectivity_list: Any

    def to_trimesh(self) -> trimesh.Trimesh:
        return _triangles(self.points, self.connectivity_list)


MeshSource = Union[MeshFile, VoxelFile, MeshRecord, VoxelRecord, TriangulationRecord]
SOURCE_TYPES = (MeshFile, VoxelFile, MeshRecord, VoxelRecord, TriangulationRecord)


def as_source(value) -> MeshSource:
    """
    Map an untyped input onto one of the mesh source classes.

    Args:
        value: A source instance, a file path, a trimesh.Trimesh, a mapping
            with vertices/faces or img/voxel_size entries, or an object with
            points and connectivity_list attributes.

    Returns:
        The matching source

    Raises:
        InvalidInputError: if the value is not recognised
    """
    if isinstance(value, SOURCE_TYPES):
        return value
    if isinstance(value, (str, Path)):
        suffix = Path(value).suffix.lower()
        if suffix in MESH_SUFFIXES:
            return MeshFile(value)
        if suffix in VOXEL_SUFFIXES:
            return VoxelFile(value)
        raise InvalidInputError(f'Not recognised input file format: {value}')
    if isinstance(value, trimesh.Trimesh):
        return MeshRecord(vertices=value.vertices, faces=value.faces)
    if isinstance(value, Mapping):
        if any(key in value for key in ('vertices', 'Vertices')):
            return MeshRecord.from_mapping(value)
        if 'img' in value:
            if 'voxel_size' not in value:
                raise InvalidInputError('Voxel mapping needs a voxel_size entry')
            return VoxelRecord(img=value['img'], voxel_size=value['voxel_size'])
        raise InvalidInputError(f'Not recognised input mapping with keys {sorted(value)}')
    for points_name, conn_name in (('points', 'connectivity_list'),
                                   ('Points', 'ConnectivityList')):
        if hasattr(value, points_name) and hasattr(value, conn_name):
            return TriangulationRecord(points=getattr(value, points_name),
                                       connectivity_list=getattr(value, conn_name))
    raise InvalidInputError(f'Not recognised input geometry of type {type(value).__name__}')


def load_mesh(source, center: bool = False) -> Mesh:
    """
    Build an oriented Mesh from any supported input.

    Face windings are made consistent (and outward for closed meshes), then
    the vertex normals are negated so they point into the solid.

    Args:
        source: Anything accepted by as_source()
        center: Translate the mesh so that its centroid is the origin

    Returns:
        Mesh with inward normals and rigid-body properties
    """
    source = as_source(source)
    tm = source.to_trimesh()
    if len(tm.vertices) == 0 or len(tm.faces) == 0:
        raise InvalidInputError(f'{type(source).__name__} produced an empty mesh')

    trimesh.repair.fix_normals(tm)
    if not tm.is_watertight:
        logger.warning('Mesh is not watertight; normal orientation and mass '
                       'properties may be unreliable')

    if center:
        tm.apply_translation(-tm.center_mass)

    normals = -np.array(tm.vertex_normals, dtype=float)
    rigid_body = RigidBodyParams.from_trimesh(tm)
    logger.info(f'Loaded {type(source).__name__}: {len(tm.vertices)} vertices, '
                f'{len(tm.faces)} faces, volume {rigid_body.volume:.6g}')

    return Mesh(vertices=tm.vertices, faces=tm.faces, normals=normals,
                rigid_body=rigid_body)
