from setuptools import setup, find_packages

def readme():
    with open('README.md') as f:
        return f.read()

with open("requirements.txt") as f:
    requirements = f.read().splitlines()

with open("version.txt") as f:
    version = f.read().strip()

setup(
    name='distrib',
    version=version,
    description='Univariate probability distributions with fitting and random variate generation',
    long_description=readme(),
    long_description_content_type='text/markdown',
    keywords = ['probability', 'statistics', 'random variates'],
    packages=find_packages(),
    python_requires='>=3.8',
    extras_require={'test': ['pytest']},
    zip_safe=False,
    install_requires=requirements,
)
