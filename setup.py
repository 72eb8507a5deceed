from setuptools import find_packages, setup


setup(
    name="popsim",
    version="1.0.0",
    description="Spatial multi-species birth-death simulator on the unit torus",
    python_requires=">=3.10",
    packages=find_packages(include=["popsim", "popsim.*"]),
    install_requires=[
        "numpy",
        "numba",
        "tqdm",
        "joblib",
    ],
    extras_require={
        "test": [
            "pytest",
            "scipy",
        ],
    },
)
