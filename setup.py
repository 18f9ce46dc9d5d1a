"""
Packaging script for PyPI.
"""
import setuptools

setuptools.setup(
	name='inferbound',
	version='0.1.0',
	packages=['inferbound', ],
	license='MIT',
	description='Infers the trait bounds a generic implementation needs, by unifying the types at its call sites',
	long_description=open('README.md').read(),
	long_description_content_type="text/markdown",
	classifiers=[
		"Programming Language :: Python :: 3.9",
		"License :: OSI Approved :: MIT License",
		"Operating System :: OS Independent",
		"Development Status :: 3 - Alpha",
		"Intended Audience :: Developers",
		"Topic :: Software Development :: Code Generators",
		"Topic :: Software Development :: Compilers",
	],
	python_requires='>=3.9',
	install_requires=[
		"booze-tools>=0.6.2.1",
	]
)
