from setuptools import setup, find_packages

with open("requirements.txt") as rf:
    requirements = [line.strip() for line in rf.read().splitlines() if line.strip()]

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="universal_parts_api",
    version="1.0.0",
    description="Phone-part compatibility lookup API: catalog indexing and model matching served over Flask.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["app", "main"],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    include_package_data=True,
)
