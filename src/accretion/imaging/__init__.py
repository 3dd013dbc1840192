"""Frame-level image processing.

- image_store: Frame IO (PixelGrid, ImageStore)
- correlation: Threshold scoring
- threshold_selector: Optimal threshold search
- component_labeler: Contour-tracing component extraction
- clusterer: K-means over centroids
- particle_analyzer: Cluster density and per-particle table
- motion: Shift and acceleration between frames
"""

from accretion.imaging.image_store import PixelGrid, ImageStore
from accretion.imaging.threshold_selector import ThresholdSelector
from accretion.imaging.component_labeler import ParticleLabeler, Centroid, trace_contour
from accretion.imaging.clusterer import KMeansClusterer
from accretion.imaging.particle_analyzer import ParticleAnalyzer, cluster_density

__all__ = [
    "PixelGrid",
    "ImageStore",
    "ThresholdSelector",
    "ParticleLabeler",
    "Centroid",
    "trace_contour",
    "KMeansClusterer",
    "ParticleAnalyzer",
    "cluster_density",
]
