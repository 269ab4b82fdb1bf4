from setuptools import find_packages, setup

setup(
    name="rateshift",
    version="0.1.0",
    description="Pitch-preserving speed change for audio files, exported as 16-bit WAV.",
    packages=find_packages(include=["rateshift", "rateshift.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "librosa",
        "soundfile",
        "click",
        "pydantic>=2",
        "toml",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "rateshift=rateshift.cli.main:cli",
        ],
    },
)
