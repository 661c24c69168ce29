"""Taichi path tracer for scenes built from spheres.

Renders still images by stochastic path tracing: every pixel averages many
jittered camera rays, each bounced through the scene by Lambertian, metal
or dielectric scattering until it escapes to the sky, is absorbed or runs
out of depth. Rows are rendered in parallel with per-row random streams, so
a fixed seed reproduces a frame exactly.

Subpackages:
    core: Vector helpers, random streams, the color integrator and frame driver
    camera: Pinhole camera and primary ray generation
    geometry: Sphere primitive and hit records
    materials: Lambertian, metal and dielectric scattering
    scene: Sphere storage, scene manager and the default scene
    preview: Window display of finished pixel buffers
"""

__version__ = "0.1.0"
