from setuptools import setup, find_packages

setup(
    name="trunkvision",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "opencv-python>=4.5.0",
        "numpy>=1.19.0",
        "Pillow>=8.0.0",
        "ezdxf>=1.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "trunkvision=trunkvision.__main__:main",
        ],
    },
    python_requires=">=3.9",
)
