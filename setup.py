import setuptools

with open("README.md", "r") as fh:
    long_description = fh.read()

setuptools.setup(
    name="tinyuri",
    version="1.0.0",
    description="Parse, modify and rebuild URIs, including unexpanded URI-Template placeholders.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=setuptools.find_packages(where="src"),
    python_requires=">=3.8",
    install_requires=[
        "appdirs",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
