from typing import Any, Dict, List, Sequence


SCALAR_MEASUREMENTS = ['roll', 'pitch', 'yaw', 'total_accel']
AXIAL_MEASUREMENTS = ['gyros', 'accel', 'magnet']
AXES = ['x', 'y', 'z']


def feature_names(
    locations: Sequence[str],
    scalar_measurements: Sequence[str] = SCALAR_MEASUREMENTS,
    axial_measurements: Sequence[str] = AXIAL_MEASUREMENTS,
    axes: Sequence[str] = AXES,
) -> List[str]:
    """
    Build sensor column names for the given locations.

    Columns follow the ``<type>_<location>[_<axis>]`` convention of the
    Weight Lifting Exercises dataset. For every location (in the order given)
    the scalar channels come first, then each axial channel expanded over the
    axes, e.g. ``roll_belt, ..., total_accel_belt, gyros_belt_x, ...``.

    Args:
        locations: Sensor locations, e.g. ``['belt', 'arm']``
        scalar_measurements: Channels without an axis suffix
        axial_measurements: Channels measured along each axis
        axes: Axis suffixes

    Returns:
        List of column names
    """
    if not locations:
        raise ValueError("At least one sensor location is required")

    names = []
    for location in locations:
        for measurement in scalar_measurements:
            names.append(f"{measurement}_{location}")
        for measurement in axial_measurements:
            for axis in axes:
                names.append(f"{measurement}_{location}_{axis}")

    return names


class FeatureNameGenerator:
    """Feature name expansion bound to the configured location universe."""

    def __init__(self, config: Dict[str, Any]):
        features = config['features']
        self.locations = list(features['locations'])
        self.scalar_measurements = list(features.get('scalar_measurements', SCALAR_MEASUREMENTS))
        self.axial_measurements = list(features.get('axial_measurements', AXIAL_MEASUREMENTS))
        self.axes = list(features.get('axes', AXES))

    def columns_for(self, subset: Sequence[str]) -> List[str]:
        """Feature columns for a subset of the location universe."""
        unknown = [location for location in subset if location not in self.locations]
        if unknown:
            raise ValueError(f"Unknown sensor locations {unknown}, expected {self.locations}")

        return feature_names(
            subset, self.scalar_measurements, self.axial_measurements, self.axes
        )

    def all_columns(self) -> List[str]:
        return self.columns_for(self.locations)
