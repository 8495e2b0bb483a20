from setuptools import setup, find_packages

setup(
    name="RestOnDynamo",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=["pydantic>=2", "boto3"],
    license="MIT",
    description="REST verbs (get, head, post, put, patch, delete) over a DynamoDB table, with every outcome wrapped in an Ok or Err result carrying an http status code.",
)
