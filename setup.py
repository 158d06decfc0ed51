"""Install the clicker backend."""

from setuptools import setup, find_packages

setup(
    name='clicker-backend',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    package_data={'clicker': ['config.py']},
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "redis",
        "fakeredis",
        "pyjwt",
        "python-dateutil",
        "pytz",
        "retry",
        "requests",
        "python-json-logger",
        "flask-cors"
    ],
    extras_require={
        'test': [
            "pytest",
            "mimesis"
        ]
    },
    zip_safe=False
)
