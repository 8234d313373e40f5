from setuptools import setup, find_packages

setup(
    name="dialogchat",
    version="0.1.0",
    description="Voice and text chat client for Dialogflow agents",
    author="",
    python_requires=">=3.9",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyaudio>=0.2.11",
        "numpy>=1.21.0",
        "google-cloud-dialogflow>=2.20.0",
        "google-api-core>=2.10.0",
        "google-auth>=2.10.0",
        "rich>=12.5.0",
        "pyyaml>=6.0.0",
        "pypubsub>=4.0.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "dialogchat=dialogchat.main:main",
        ],
    },
)
