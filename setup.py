from pathlib import Path

from setuptools import find_packages, setup

setup(
    name="image_annotator",
    version=Path("./image_annotator/VERSION").read_text().strip(),
    packages=find_packages(include=["image_annotator", "image_annotator.*"]),
    package_data={"image_annotator": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python-headless",
        "easydict",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["image_annotator=image_annotator.cli:main"],
    },
)
