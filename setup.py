#!/usr/bin/env python

if __name__ == '__main__':
    import setuptools

    setuptools.setup(
        name='sparseio',
        version='0.1.0',
        description='Sparse byte streams, holes preserved',
        license='BSD-2-Clause',
        package_dir={'': 'src'},
        packages=setuptools.find_packages('src'),
        python_requires='>=3.7',
        install_requires=[
            'bytesparse',
        ],
        extras_require={
            'testing': [
                'pytest',
            ],
        },
    )
