"""Content-class package handling.

- paths.py: package name / repository path resolution
- archive.py: binary package extraction
- scanner.py: class-definition discovery and transformation
- manifest.py: package.xml and class-definition parsing
- loader.py: text-based package loading
- installer.py: install / uninstall / binary package management
- reassign.py: changing the class of content objects
- service.py: the ContentClassPackage front end
"""
