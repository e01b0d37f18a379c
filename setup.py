from setuptools import setup, find_packages

setup(
    name="textundo",
    version="0.1.0",
    description="Command-based undo/redo engine for text editors, with a PyQt5 editor binding",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "PyQt5>=5.15",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "textundo=textundo.main:main",
        ],
    },
)
