from setuptools import setup

setup(
    name="nats-jsm",
    version="0.1.0",
    description="Manage and consume NATS JetStream consumers",
    license="Apache 2 License",
    python_requires=">=3.8",
    install_requires=["nats-py>=2.0"],
    extras_require={
        "test": ["pytest", "pytest-asyncio"],
    },
    packages=["jsm"],
    package_data={"jsm": ["py.typed"]},
    zip_safe=True,
)
