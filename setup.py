from setuptools import setup, find_packages
import ssaopt


with open('readme.rst') as f:
    long_description = f.read()


setup(
    name='ssaopt',
    description="Optimization passes over an SSA intermediate representation implemented in pure Python",
    long_description=long_description,
    version=ssaopt.__version__,
    include_package_data=True,
    packages=find_packages(exclude=["*.test.*", "test"]),
    package_data={'': ["*.rst"]},
    license='BSD',
    classifiers=[
        'License :: OSI Approved :: BSD License',
        'Development Status :: 3 - Alpha',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: Implementation :: CPython',
        'Programming Language :: Python :: Implementation :: PyPy',
        'Topic :: Software Development :: Compilers',
    ]
)
