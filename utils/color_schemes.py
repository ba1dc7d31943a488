"""
Color schemes for the flood-mapping dashboard.

Each map layer style gets fill/line colors as RGBA lists (pydeck format)
plus a hex value for legends.
"""

# =============================================================================
# LAYER STYLES (keyed by MapLayer.style)
# =============================================================================

LAYER_STYLES = {
    'boundary': {
        'name': 'Barangay Boundaries',
        'hex': '#8E99A4',
        'fill': [142, 153, 164, 40],       # Cool Slate wash
        'line': [110, 120, 130, 160],
        'line_width': 1,
        'radius': 0,
    },
    'highlight': {
        'name': 'Selected Area',
        'hex': '#0099CC',
        'fill': [0, 153, 204, 20],         # Dark cyan, low-opacity fill
        'line': [0, 153, 204, 255],        # Dark cyan outline
        'glow': [0, 153, 204, 90],         # Outer glow stroke
        'line_width': 2,
        'radius': 0,
    },
    'households': {
        'name': 'Households',
        'hex': '#D4A574',
        'fill': [212, 165, 116, 210],      # Warm Amber
        'line': [120, 84, 50, 200],
        'line_width': 1,
        'radius': 12,
    },
    'schools': {
        'name': 'Schools',
        'hex': '#4183C4',
        'fill': [65, 131, 196, 220],       # Primary Blue
        'line': [31, 82, 132, 220],
        'line_width': 1,
        'radius': 40,
    },
    'flood_extent': {
        'name': 'Flood Extent',
        'hex': '#3A7BD5',
        'fill': [58, 123, 213, 128],       # 50% opacity water blue
        'line': [58, 123, 213, 160],
        'line_width': 0,
        'radius': 0,
    },
}

DEFAULT_STYLE = 'boundary'


def get_layer_style(style: str) -> dict:
    """Style entry for a layer, falling back to the boundary style."""
    return LAYER_STYLES.get(style, LAYER_STYLES[DEFAULT_STYLE])


def get_layer_hex_color(style: str) -> str:
    return get_layer_style(style)['hex']
