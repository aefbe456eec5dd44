"""Program images, the demonstration program and its listing."""

from fdxsim.program.image import ImageLoadError, ImageSpec, load_images, parse_image_spec, read_image
from fdxsim.program.listing import ListingLine, build_listing, disassemble, format_line
from fdxsim.program.sample import create_demo_cpu, demo_listing

__all__ = [
    "ImageLoadError",
    "ImageSpec",
    "ListingLine",
    "build_listing",
    "create_demo_cpu",
    "demo_listing",
    "disassemble",
    "format_line",
    "load_images",
    "parse_image_spec",
    "read_image",
]
