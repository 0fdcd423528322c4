"""Install the profile service."""

from setuptools import setup, find_packages

setup(
    name='profile-accounts',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    py_modules=['wsgi'],
    package_data={'profiles': ['config.py']},
    install_requires=[
        "flask>=2.2",
        "flask-sqlalchemy>=3.0",
        "sqlalchemy>=1.4",
        "redis",
        "fakeredis",
        "wtforms",
        "email-validator",
        "bcrypt",
        "pytz",
        "python-json-logger",
    ],
    extras_require={
        'test': [
            "pytest",
            "hypothesis",
            "jsonschema",
        ]
    },
    zip_safe=False
)
