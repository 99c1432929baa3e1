# -----------------------------------------------------------------------------------------------
# © 2024 Autonomous Non-Profit Organization "Artificial Intelligence Research Institute" (AIRI);
# Moscow Institute of Physics and Technology (National Research University). All rights reserved.
# 
# Licensed under the AGPLv3 license. See LICENSE in the project root for license information.
# -----------------------------------------------------------------------------------------------

from setuptools import setup, find_packages

setup(
    name='htmsp',
    version='1.0',
    description='HTM sparse distributed representations and spatial pooling',
    url='https://github.com/AIRI-Institute/him-agent',
    license='AGPLv3',
    packages=find_packages(include=['htmsp', 'htmsp.*']),
    package_data={
        'htmsp.experiments.spatial_pooling': ['configs/*.yaml'],
    },
    python_requires='>=3.9',
    install_requires=[
        'numpy',
        'numba',
        'ruamel.yaml',
        'wandb',
        'matplotlib',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'htmsp-sp-stats=htmsp.experiments.spatial_pooling.run:main',
        ],
    },
)
