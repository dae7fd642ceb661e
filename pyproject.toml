[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kafkaoperator"
version = "0.1.0"
description = "Kubernetes manifests, Cruise Control scaling and KafkaTopic admission checks for Kafka clusters"
requires-python = ">=3.10"
keywords = ["kafka", "kubernetes", "operator", "cruise-control", "envoy", "admission-webhook"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
]
dependencies = [
    "requests",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["kafkaoperator"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
