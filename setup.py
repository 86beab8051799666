"""Install the Whop OAuth relay."""

from setuptools import setup, find_packages

setup(
    name='whop-oauth2',
    version='0.1.0',
    packages=find_packages(include=['whop_oauth2', 'whop_oauth2.*']),
    package_data={'whop_oauth2': ['templates/*.html']},
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "pyjwt>=2",
        "python-json-logger",
        "requests",
        "jinja2",
    ],
    extras_require={
        'test': [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
    zip_safe=False
)
