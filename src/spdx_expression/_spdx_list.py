#
# Copyright (c) nexB Inc. and others. All rights reserved.
# SPDX-License-Identifier: Apache-2.0
# See http://www.apache.org/licenses/LICENSE-2.0 for the license text.
# See https://github.com/aboutcode-org/license-expression for support or download.
# See https://aboutcode.org for more information about nexB OSS projects.
#
"""
Static SPDX license list data.

The LICENSES and EXCEPTIONS tables come from the SPDX license-list-data
release named in VERSION. The GFDL "invariants" identifiers introduced in
later list releases are included as well. The "+" suffixed identifiers of the
list are not: a trailing "+" is an operator, never part of an identifier.

Both tables MUST stay sorted by name in code point order: lookups use a
binary search.
"""

IS_FSF_LIBRE = 0x1
IS_OSI_APPROVED = 0x2
IS_DEPRECATED = 0x4
IS_COPYLEFT = 0x8
IS_GNU = 0x10

VERSION = '3.6'

# (identifier, full name, flags)
LICENSES = (
    ('0BSD', 'BSD Zero Clause License', IS_OSI_APPROVED),
    ('AAL', 'Attribution Assurance License', IS_OSI_APPROVED),
    ('ADSL', 'Amazon Digital Services License', 0),
    ('AFL-1.1', 'Academic Free License v1.1', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('AFL-1.2', 'Academic Free License v1.2', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('AFL-2.0', 'Academic Free License v2.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('AFL-2.1', 'Academic Free License v2.1', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('AFL-3.0', 'Academic Free License v3.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('AGPL-1.0', 'Affero General Public License v1.0', IS_DEPRECATED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('AGPL-1.0-only', 'Affero General Public License v1.0 only', IS_COPYLEFT | IS_GNU),
    ('AGPL-1.0-or-later', 'Affero General Public License v1.0 or later', IS_COPYLEFT | IS_GNU),
    ('AGPL-3.0', 'GNU Affero General Public License v3.0', IS_DEPRECATED | IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('AGPL-3.0-only', 'GNU Affero General Public License v3.0 only', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('AGPL-3.0-or-later', 'GNU Affero General Public License v3.0 or later', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('AMDPLPA', 'AMD\'s plpa_map.c License', 0),
    ('AML', 'Apple MIT License', 0),
    ('AMPAS', 'Academy of Motion Picture Arts and Sciences BSD', 0),
    ('ANTLR-PD', 'ANTLR Software Rights Notice', 0),
    ('APAFML', 'Adobe Postscript AFM License', 0),
    ('APL-1.0', 'Adaptive Public License 1.0', IS_OSI_APPROVED),
    ('APSL-1.0', 'Apple Public Source License 1.0', IS_OSI_APPROVED),
    ('APSL-1.1', 'Apple Public Source License 1.1', IS_OSI_APPROVED),
    ('APSL-1.2', 'Apple Public Source License 1.2', IS_OSI_APPROVED),
    ('APSL-2.0', 'Apple Public Source License 2.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('Abstyles', 'Abstyles License', 0),
    ('Adobe-2006', 'Adobe Systems Incorporated Source Code License Agreement', 0),
    ('Adobe-Glyph', 'Adobe Glyph List License', 0),
    ('Afmparse', 'Afmparse License', 0),
    ('Aladdin', 'Aladdin Free Public License', 0),
    ('Apache-1.0', 'Apache License 1.0', IS_FSF_LIBRE),
    ('Apache-1.1', 'Apache License 1.1', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('Apache-2.0', 'Apache License 2.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('Artistic-1.0', 'Artistic License 1.0', IS_OSI_APPROVED),
    ('Artistic-1.0-Perl', 'Artistic License 1.0 (Perl)', IS_OSI_APPROVED),
    ('Artistic-1.0-cl8', 'Artistic License 1.0 w/clause 8', IS_OSI_APPROVED),
    ('Artistic-2.0', 'Artistic License 2.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('BSD-1-Clause', 'BSD 1-Clause License', 0),
    ('BSD-2-Clause', 'BSD 2-Clause "Simplified" License', IS_OSI_APPROVED),
    ('BSD-2-Clause-FreeBSD', 'BSD 2-Clause FreeBSD License', IS_FSF_LIBRE),
    ('BSD-2-Clause-NetBSD', 'BSD 2-Clause NetBSD License', 0),
    ('BSD-2-Clause-Patent', 'BSD-2-Clause Plus Patent License', IS_OSI_APPROVED),
    ('BSD-3-Clause', 'BSD 3-Clause "New" or "Revised" License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('BSD-3-Clause-Attribution', 'BSD with attribution', 0),
    ('BSD-3-Clause-Clear', 'BSD 3-Clause Clear License', IS_FSF_LIBRE),
    ('BSD-3-Clause-LBNL', 'Lawrence Berkeley National Labs BSD variant license', IS_OSI_APPROVED),
    ('BSD-3-Clause-No-Nuclear-License', 'BSD 3-Clause No Nuclear License', 0),
    ('BSD-3-Clause-No-Nuclear-License-2014', 'BSD 3-Clause No Nuclear License 2014', 0),
    ('BSD-3-Clause-No-Nuclear-Warranty', 'BSD 3-Clause No Nuclear Warranty', 0),
    ('BSD-3-Clause-Open-MPI', 'BSD 3-Clause Open MPI variant', 0),
    ('BSD-4-Clause', 'BSD 4-Clause "Original" or "Old" License', IS_FSF_LIBRE),
    ('BSD-4-Clause-UC', 'BSD-4-Clause (University of California-Specific)', 0),
    ('BSD-Protection', 'BSD Protection License', IS_COPYLEFT),
    ('BSD-Source-Code', 'BSD Source Code Attribution', 0),
    ('BSL-1.0', 'Boost Software License 1.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('Bahyph', 'Bahyph License', 0),
    ('Barr', 'Barr License', 0),
    ('Beerware', 'Beerware License', 0),
    ('BitTorrent-1.0', 'BitTorrent Open Source License v1.0', 0),
    ('BitTorrent-1.1', 'BitTorrent Open Source License v1.1', IS_FSF_LIBRE),
    ('BlueOak-1.0.0', 'Blue Oak Model License 1.0.0', 0),
    ('Borceux', 'Borceux license', 0),
    ('CATOSL-1.1', 'Computer Associates Trusted Open Source License 1.1', IS_OSI_APPROVED),
    ('CC-BY-1.0', 'Creative Commons Attribution 1.0 Generic', 0),
    ('CC-BY-2.0', 'Creative Commons Attribution 2.0 Generic', 0),
    ('CC-BY-2.5', 'Creative Commons Attribution 2.5 Generic', 0),
    ('CC-BY-3.0', 'Creative Commons Attribution 3.0 Unported', 0),
    ('CC-BY-4.0', 'Creative Commons Attribution 4.0 International', IS_FSF_LIBRE),
    ('CC-BY-NC-1.0', 'Creative Commons Attribution Non Commercial 1.0 Generic', 0),
    ('CC-BY-NC-2.0', 'Creative Commons Attribution Non Commercial 2.0 Generic', 0),
    ('CC-BY-NC-2.5', 'Creative Commons Attribution Non Commercial 2.5 Generic', 0),
    ('CC-BY-NC-3.0', 'Creative Commons Attribution Non Commercial 3.0 Unported', 0),
    ('CC-BY-NC-4.0', 'Creative Commons Attribution Non Commercial 4.0 International', 0),
    ('CC-BY-NC-ND-1.0', 'Creative Commons Attribution Non Commercial No Derivatives 1.0 Generic', 0),
    ('CC-BY-NC-ND-2.0', 'Creative Commons Attribution Non Commercial No Derivatives 2.0 Generic', 0),
    ('CC-BY-NC-ND-2.5', 'Creative Commons Attribution Non Commercial No Derivatives 2.5 Generic', 0),
    ('CC-BY-NC-ND-3.0', 'Creative Commons Attribution Non Commercial No Derivatives 3.0 Unported', 0),
    ('CC-BY-NC-ND-4.0', 'Creative Commons Attribution Non Commercial No Derivatives 4.0 International', 0),
    ('CC-BY-NC-SA-1.0', 'Creative Commons Attribution Non Commercial Share Alike 1.0 Generic', IS_COPYLEFT),
    ('CC-BY-NC-SA-2.0', 'Creative Commons Attribution Non Commercial Share Alike 2.0 Generic', IS_COPYLEFT),
    ('CC-BY-NC-SA-2.5', 'Creative Commons Attribution Non Commercial Share Alike 2.5 Generic', IS_COPYLEFT),
    ('CC-BY-NC-SA-3.0', 'Creative Commons Attribution Non Commercial Share Alike 3.0 Unported', IS_COPYLEFT),
    ('CC-BY-NC-SA-4.0', 'Creative Commons Attribution Non Commercial Share Alike 4.0 International', IS_COPYLEFT),
    ('CC-BY-ND-1.0', 'Creative Commons Attribution No Derivatives 1.0 Generic', 0),
    ('CC-BY-ND-2.0', 'Creative Commons Attribution No Derivatives 2.0 Generic', 0),
    ('CC-BY-ND-2.5', 'Creative Commons Attribution No Derivatives 2.5 Generic', 0),
    ('CC-BY-ND-3.0', 'Creative Commons Attribution No Derivatives 3.0 Unported', 0),
    ('CC-BY-ND-4.0', 'Creative Commons Attribution No Derivatives 4.0 International', 0),
    ('CC-BY-SA-1.0', 'Creative Commons Attribution Share Alike 1.0 Generic', IS_COPYLEFT),
    ('CC-BY-SA-2.0', 'Creative Commons Attribution Share Alike 2.0 Generic', IS_COPYLEFT),
    ('CC-BY-SA-2.5', 'Creative Commons Attribution Share Alike 2.5 Generic', IS_COPYLEFT),
    ('CC-BY-SA-3.0', 'Creative Commons Attribution Share Alike 3.0 Unported', IS_COPYLEFT),
    ('CC-BY-SA-4.0', 'Creative Commons Attribution Share Alike 4.0 International', IS_FSF_LIBRE | IS_COPYLEFT),
    ('CC-PDDC', 'Creative Commons Public Domain Dedication and Certification', 0),
    ('CC0-1.0', 'Creative Commons Zero v1.0 Universal', IS_FSF_LIBRE),
    ('CDDL-1.0', 'Common Development and Distribution License 1.0', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('CDDL-1.1', 'Common Development and Distribution License 1.1', IS_COPYLEFT),
    ('CDLA-Permissive-1.0', 'Community Data License Agreement Permissive 1.0', 0),
    ('CDLA-Sharing-1.0', 'Community Data License Agreement Sharing 1.0', 0),
    ('CECILL-1.0', 'CeCILL Free Software License Agreement v1.0', IS_COPYLEFT),
    ('CECILL-1.1', 'CeCILL Free Software License Agreement v1.1', IS_COPYLEFT),
    ('CECILL-2.0', 'CeCILL Free Software License Agreement v2.0', IS_FSF_LIBRE | IS_COPYLEFT),
    ('CECILL-2.1', 'CeCILL Free Software License Agreement v2.1', IS_OSI_APPROVED | IS_COPYLEFT),
    ('CECILL-B', 'CeCILL-B Free Software License Agreement', IS_FSF_LIBRE | IS_COPYLEFT),
    ('CECILL-C', 'CeCILL-C Free Software License Agreement', IS_FSF_LIBRE | IS_COPYLEFT),
    ('CERN-OHL-1.1', 'CERN Open Hardware License v1.1', 0),
    ('CERN-OHL-1.2', 'CERN Open Hardware Licence v1.2', 0),
    ('CNRI-Jython', 'CNRI Jython License', 0),
    ('CNRI-Python', 'CNRI Python License', IS_OSI_APPROVED),
    ('CNRI-Python-GPL-Compatible', 'CNRI Python Open Source GPL Compatible License Agreement', IS_COPYLEFT),
    ('CPAL-1.0', 'Common Public Attribution License 1.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('CPL-1.0', 'Common Public License 1.0', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('CPOL-1.02', 'Code Project Open License 1.02', 0),
    ('CUA-OPL-1.0', 'CUA Office Public License v1.0', IS_OSI_APPROVED),
    ('Caldera', 'Caldera License', 0),
    ('ClArtistic', 'Clarified Artistic License', IS_FSF_LIBRE),
    ('Condor-1.1', 'Condor Public License v1.1', IS_FSF_LIBRE),
    ('Crossword', 'Crossword License', 0),
    ('CrystalStacker', 'CrystalStacker License', 0),
    ('Cube', 'Cube License', 0),
    ('D-FSL-1.0', 'Deutsche Freie Software Lizenz', 0),
    ('DOC', 'DOC License', 0),
    ('DSDP', 'DSDP License', 0),
    ('Dotseqn', 'Dotseqn License', 0),
    ('ECL-1.0', 'Educational Community License v1.0', IS_OSI_APPROVED),
    ('ECL-2.0', 'Educational Community License v2.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('EFL-1.0', 'Eiffel Forum License v1.0', IS_OSI_APPROVED),
    ('EFL-2.0', 'Eiffel Forum License v2.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('EPL-1.0', 'Eclipse Public License 1.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('EPL-2.0', 'Eclipse Public License 2.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('EUDatagrid', 'EU DataGrid Software License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('EUPL-1.0', 'European Union Public License 1.0', IS_COPYLEFT),
    ('EUPL-1.1', 'European Union Public License 1.1', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('EUPL-1.2', 'European Union Public License 1.2', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('Entessa', 'Entessa Public License v1.0', IS_OSI_APPROVED),
    ('ErlPL-1.1', 'Erlang Public License v1.1', 0),
    ('Eurosym', 'Eurosym License', 0),
    ('FSFAP', 'FSF All Permissive License', IS_FSF_LIBRE),
    ('FSFUL', 'FSF Unlimited License', 0),
    ('FSFULLR', 'FSF Unlimited License (with License Retention)', 0),
    ('FTL', 'Freetype Project License', IS_FSF_LIBRE),
    ('Fair', 'Fair License', IS_OSI_APPROVED),
    ('Frameworx-1.0', 'Frameworx Open License 1.0', IS_OSI_APPROVED),
    ('FreeImage', 'FreeImage Public License v1.0', 0),
    ('GFDL-1.1', 'GNU Free Documentation License v1.1', IS_DEPRECATED | IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.1-invariants-only', 'GNU Free Documentation License v1.1 only - invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.1-invariants-or-later', 'GNU Free Documentation License v1.1 or later - invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.1-no-invariants-only', 'GNU Free Documentation License v1.1 only - no invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.1-no-invariants-or-later', 'GNU Free Documentation License v1.1 or later - no invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.1-only', 'GNU Free Documentation License v1.1 only', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.1-or-later', 'GNU Free Documentation License v1.1 or later', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.2', 'GNU Free Documentation License v1.2', IS_DEPRECATED | IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.2-invariants-only', 'GNU Free Documentation License v1.2 only - invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.2-invariants-or-later', 'GNU Free Documentation License v1.2 or later - invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.2-no-invariants-only', 'GNU Free Documentation License v1.2 only - no invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.2-no-invariants-or-later', 'GNU Free Documentation License v1.2 or later - no invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.2-only', 'GNU Free Documentation License v1.2 only', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.2-or-later', 'GNU Free Documentation License v1.2 or later', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.3', 'GNU Free Documentation License v1.3', IS_DEPRECATED | IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.3-invariants-only', 'GNU Free Documentation License v1.3 only - invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.3-invariants-or-later', 'GNU Free Documentation License v1.3 or later - invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.3-no-invariants-only', 'GNU Free Documentation License v1.3 only - no invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.3-no-invariants-or-later', 'GNU Free Documentation License v1.3 or later - no invariants', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.3-only', 'GNU Free Documentation License v1.3 only', IS_FSF_LIBRE | IS_GNU),
    ('GFDL-1.3-or-later', 'GNU Free Documentation License v1.3 or later', IS_FSF_LIBRE | IS_GNU),
    ('GL2PS', 'GL2PS License', 0),
    ('GPL-1.0', 'GNU General Public License v1.0 only', IS_DEPRECATED | IS_COPYLEFT | IS_GNU),
    ('GPL-1.0-only', 'GNU General Public License v1.0 only', IS_COPYLEFT | IS_GNU),
    ('GPL-1.0-or-later', 'GNU General Public License v1.0 or later', IS_COPYLEFT | IS_GNU),
    ('GPL-2.0', 'GNU General Public License v2.0 only', IS_DEPRECATED | IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('GPL-2.0-only', 'GNU General Public License v2.0 only', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('GPL-2.0-or-later', 'GNU General Public License v2.0 or later', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('GPL-2.0-with-GCC-exception', 'GNU General Public License v2.0 w/GCC Runtime Library exception', IS_DEPRECATED | IS_COPYLEFT | IS_GNU),
    ('GPL-2.0-with-autoconf-exception', 'GNU General Public License v2.0 w/Autoconf exception', IS_DEPRECATED | IS_COPYLEFT | IS_GNU),
    ('GPL-2.0-with-bison-exception', 'GNU General Public License v2.0 w/Bison exception', IS_DEPRECATED | IS_COPYLEFT | IS_GNU),
    ('GPL-2.0-with-classpath-exception', 'GNU General Public License v2.0 w/Classpath exception', IS_DEPRECATED | IS_COPYLEFT | IS_GNU),
    ('GPL-2.0-with-font-exception', 'GNU General Public License v2.0 w/Font exception', IS_DEPRECATED | IS_COPYLEFT | IS_GNU),
    ('GPL-3.0', 'GNU General Public License v3.0 only', IS_DEPRECATED | IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('GPL-3.0-only', 'GNU General Public License v3.0 only', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('GPL-3.0-or-later', 'GNU General Public License v3.0 or later', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('GPL-3.0-with-GCC-exception', 'GNU General Public License v3.0 w/GCC Runtime Library exception', IS_DEPRECATED | IS_OSI_APPROVED | IS_COPYLEFT | IS_GNU),
    ('GPL-3.0-with-autoconf-exception', 'GNU General Public License v3.0 w/Autoconf exception', IS_DEPRECATED | IS_COPYLEFT | IS_GNU),
    ('Giftware', 'Giftware License', 0),
    ('Glide', '3dfx Glide License', 0),
    ('Glulxe', 'Glulxe License', 0),
    ('HPND', 'Historical Permission Notice and Disclaimer', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('HPND-sell-variant', 'Historical Permission Notice and Disclaimer - sell variant', 0),
    ('HaskellReport', 'Haskell Language Report License', 0),
    ('IBM-pibs', 'IBM PowerPC Initialization and Boot Software', 0),
    ('ICU', 'ICU License', 0),
    ('IJG', 'Independent JPEG Group License', IS_FSF_LIBRE),
    ('IPA', 'IPA Font License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('IPL-1.0', 'IBM Public License v1.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('ISC', 'ISC License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('ImageMagick', 'ImageMagick License', 0),
    ('Imlib2', 'Imlib2 License', IS_FSF_LIBRE),
    ('Info-ZIP', 'Info-ZIP License', 0),
    ('Intel', 'Intel Open Source License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('Intel-ACPI', 'Intel ACPI Software License Agreement', 0),
    ('Interbase-1.0', 'Interbase Public License v1.0', 0),
    ('JPNIC', 'Japan Network Information Center License', 0),
    ('JSON', 'JSON License', 0),
    ('JasPer-2.0', 'JasPer License', 0),
    ('LAL-1.2', 'Licence Art Libre 1.2', 0),
    ('LAL-1.3', 'Licence Art Libre 1.3', 0),
    ('LGPL-2.0', 'GNU Library General Public License v2 only', IS_DEPRECATED | IS_OSI_APPROVED | IS_COPYLEFT | IS_GNU),
    ('LGPL-2.0-only', 'GNU Library General Public License v2 only', IS_OSI_APPROVED | IS_COPYLEFT | IS_GNU),
    ('LGPL-2.0-or-later', 'GNU Library General Public License v2 or later', IS_OSI_APPROVED | IS_COPYLEFT | IS_GNU),
    ('LGPL-2.1', 'GNU Lesser General Public License v2.1 only', IS_DEPRECATED | IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('LGPL-2.1-only', 'GNU Lesser General Public License v2.1 only', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('LGPL-2.1-or-later', 'GNU Lesser General Public License v2.1 or later', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('LGPL-3.0', 'GNU Lesser General Public License v3.0 only', IS_DEPRECATED | IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('LGPL-3.0-only', 'GNU Lesser General Public License v3.0 only', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('LGPL-3.0-or-later', 'GNU Lesser General Public License v3.0 or later', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT | IS_GNU),
    ('LGPLLR', 'Lesser General Public License For Linguistic Resources', 0),
    ('LPL-1.0', 'Lucent Public License Version 1.0', IS_OSI_APPROVED),
    ('LPL-1.02', 'Lucent Public License v1.02', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('LPPL-1.0', 'LaTeX Project Public License v1.0', 0),
    ('LPPL-1.1', 'LaTeX Project Public License v1.1', 0),
    ('LPPL-1.2', 'LaTeX Project Public License v1.2', IS_FSF_LIBRE),
    ('LPPL-1.3a', 'LaTeX Project Public License v1.3a', IS_FSF_LIBRE),
    ('LPPL-1.3c', 'LaTeX Project Public License v1.3c', IS_OSI_APPROVED),
    ('Latex2e', 'Latex2e License', 0),
    ('Leptonica', 'Leptonica License', 0),
    ('LiLiQ-P-1.1', 'Licence Libre du Québec – Permissive version 1.1', IS_OSI_APPROVED),
    ('LiLiQ-R-1.1', 'Licence Libre du Québec – Réciprocité version 1.1', IS_OSI_APPROVED),
    ('LiLiQ-Rplus-1.1', 'Licence Libre du Québec – Réciprocité forte version 1.1', IS_OSI_APPROVED),
    ('Libpng', 'libpng License', 0),
    ('Linux-OpenIB', 'Linux Kernel Variant of OpenIB.org license', 0),
    ('MIT', 'MIT License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('MIT-0', 'MIT No Attribution', IS_OSI_APPROVED),
    ('MIT-CMU', 'CMU License', 0),
    ('MIT-advertising', 'Enlightenment License (e16)', 0),
    ('MIT-enna', 'enna License', 0),
    ('MIT-feh', 'feh License', 0),
    ('MITNFA', 'MIT +no-false-attribs license', 0),
    ('MPL-1.0', 'Mozilla Public License 1.0', IS_OSI_APPROVED | IS_COPYLEFT),
    ('MPL-1.1', 'Mozilla Public License 1.1', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('MPL-2.0', 'Mozilla Public License 2.0', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('MPL-2.0-no-copyleft-exception', 'Mozilla Public License 2.0 (no copyleft exception)', IS_OSI_APPROVED | IS_COPYLEFT),
    ('MS-PL', 'Microsoft Public License', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('MS-RL', 'Microsoft Reciprocal License', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('MTLL', 'Matrix Template Library License', 0),
    ('MakeIndex', 'MakeIndex License', 0),
    ('MirOS', 'MirOS License', IS_OSI_APPROVED),
    ('Motosoto', 'Motosoto License', IS_OSI_APPROVED),
    ('Multics', 'Multics License', IS_OSI_APPROVED),
    ('Mup', 'Mup License', 0),
    ('NASA-1.3', 'NASA Open Source Agreement 1.3', IS_OSI_APPROVED),
    ('NBPL-1.0', 'Net Boolean Public License v1', 0),
    ('NCSA', 'University of Illinois/NCSA Open Source License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('NGPL', 'Nethack General Public License', IS_OSI_APPROVED),
    ('NLOD-1.0', 'Norwegian Licence for Open Government Data', 0),
    ('NLPL', 'No Limit Public License', 0),
    ('NOSL', 'Netizen Open Source License', IS_FSF_LIBRE),
    ('NPL-1.0', 'Netscape Public License v1.0', IS_FSF_LIBRE | IS_COPYLEFT),
    ('NPL-1.1', 'Netscape Public License v1.1', IS_FSF_LIBRE | IS_COPYLEFT),
    ('NPOSL-3.0', 'Non-Profit Open Software License 3.0', IS_OSI_APPROVED),
    ('NRL', 'NRL License', 0),
    ('NTP', 'NTP License', IS_OSI_APPROVED),
    ('Naumen', 'Naumen Public License', IS_OSI_APPROVED),
    ('Net-SNMP', 'Net-SNMP License', 0),
    ('NetCDF', 'NetCDF license', 0),
    ('Newsletr', 'Newsletr License', 0),
    ('Nokia', 'Nokia Open Source License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('Noweb', 'Noweb License', 0),
    ('Nunit', 'Nunit License', IS_DEPRECATED | IS_FSF_LIBRE),
    ('OCCT-PL', 'Open CASCADE Technology Public License', 0),
    ('OCLC-2.0', 'OCLC Research Public License 2.0', IS_OSI_APPROVED),
    ('ODC-By-1.0', 'Open Data Commons Attribution License v1.0', 0),
    ('ODbL-1.0', 'ODC Open Database License v1.0', IS_FSF_LIBRE),
    ('OFL-1.0', 'SIL Open Font License 1.0', IS_FSF_LIBRE),
    ('OFL-1.1', 'SIL Open Font License 1.1', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('OGL-UK-1.0', 'Open Government Licence v1.0', 0),
    ('OGL-UK-2.0', 'Open Government Licence v2.0', 0),
    ('OGL-UK-3.0', 'Open Government Licence v3.0', 0),
    ('OGTSL', 'Open Group Test Suite License', IS_OSI_APPROVED),
    ('OLDAP-1.1', 'Open LDAP Public License v1.1', 0),
    ('OLDAP-1.2', 'Open LDAP Public License v1.2', 0),
    ('OLDAP-1.3', 'Open LDAP Public License v1.3', 0),
    ('OLDAP-1.4', 'Open LDAP Public License v1.4', 0),
    ('OLDAP-2.0', 'Open LDAP Public License v2.0 (or possibly 2.0A and 2.0B)', 0),
    ('OLDAP-2.0.1', 'Open LDAP Public License v2.0.1', 0),
    ('OLDAP-2.1', 'Open LDAP Public License v2.1', 0),
    ('OLDAP-2.2', 'Open LDAP Public License v2.2', 0),
    ('OLDAP-2.2.1', 'Open LDAP Public License v2.2.1', 0),
    ('OLDAP-2.2.2', 'Open LDAP Public License 2.2.2', 0),
    ('OLDAP-2.3', 'Open LDAP Public License v2.3', IS_FSF_LIBRE),
    ('OLDAP-2.4', 'Open LDAP Public License v2.4', 0),
    ('OLDAP-2.5', 'Open LDAP Public License v2.5', 0),
    ('OLDAP-2.6', 'Open LDAP Public License v2.6', 0),
    ('OLDAP-2.7', 'Open LDAP Public License v2.7', IS_FSF_LIBRE),
    ('OLDAP-2.8', 'Open LDAP Public License v2.8', 0),
    ('OML', 'Open Market License', 0),
    ('OPL-1.0', 'Open Public License v1.0', 0),
    ('OSET-PL-2.1', 'OSET Public License version 2.1', IS_OSI_APPROVED),
    ('OSL-1.0', 'Open Software License 1.0', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('OSL-1.1', 'Open Software License 1.1', IS_FSF_LIBRE | IS_COPYLEFT),
    ('OSL-2.0', 'Open Software License 2.0', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('OSL-2.1', 'Open Software License 2.1', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('OSL-3.0', 'Open Software License 3.0', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('OpenSSL', 'OpenSSL License', IS_FSF_LIBRE),
    ('PDDL-1.0', 'ODC Public Domain Dedication & License 1.0', 0),
    ('PHP-3.0', 'PHP License v3.0', IS_OSI_APPROVED),
    ('PHP-3.01', 'PHP License v3.01', IS_FSF_LIBRE),
    ('Parity-6.0.0', 'The Parity Public License 6.0.0', IS_COPYLEFT),
    ('Plexus', 'Plexus Classworlds License', 0),
    ('PostgreSQL', 'PostgreSQL License', IS_OSI_APPROVED),
    ('Python-2.0', 'Python License 2.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('QPL-1.0', 'Q Public License 1.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('Qhull', 'Qhull License', 0),
    ('RHeCos-1.1', 'Red Hat eCos Public License v1.1', 0),
    ('RPL-1.1', 'Reciprocal Public License 1.1', IS_OSI_APPROVED),
    ('RPL-1.5', 'Reciprocal Public License 1.5', IS_OSI_APPROVED),
    ('RPSL-1.0', 'RealNetworks Public Source License v1.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('RSA-MD', 'RSA Message-Digest License ', 0),
    ('RSCPL', 'Ricoh Source Code Public License', IS_OSI_APPROVED),
    ('Rdisc', 'Rdisc License', 0),
    ('Ruby', 'Ruby License', IS_FSF_LIBRE),
    ('SAX-PD', 'Sax Public Domain Notice', 0),
    ('SCEA', 'SCEA Shared Source License', 0),
    ('SGI-B-1.0', 'SGI Free Software License B v1.0', 0),
    ('SGI-B-1.1', 'SGI Free Software License B v1.1', 0),
    ('SGI-B-2.0', 'SGI Free Software License B v2.0', IS_FSF_LIBRE),
    ('SHL-0.5', 'Solderpad Hardware License v0.5', 0),
    ('SHL-0.51', 'Solderpad Hardware License, Version 0.51', 0),
    ('SISSL', 'Sun Industry Standards Source License v1.1', IS_OSI_APPROVED | IS_FSF_LIBRE | IS_COPYLEFT),
    ('SISSL-1.2', 'Sun Industry Standards Source License v1.2', 0),
    ('SMLNJ', 'Standard ML of New Jersey License', IS_FSF_LIBRE),
    ('SMPPL', 'Secure Messaging Protocol Public License', 0),
    ('SNIA', 'SNIA Public License 1.1', 0),
    ('SPL-1.0', 'Sun Public License v1.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('SSPL-1.0', 'Server Side Public License, v 1', 0),
    ('SWL', 'Scheme Widget Library (SWL) Software License Agreement', 0),
    ('Saxpath', 'Saxpath License', 0),
    ('Sendmail', 'Sendmail License', 0),
    ('Sendmail-8.23', 'Sendmail License 8.23', 0),
    ('SimPL-2.0', 'Simple Public License 2.0', IS_OSI_APPROVED),
    ('Sleepycat', 'Sleepycat License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('Spencer-86', 'Spencer License 86', 0),
    ('Spencer-94', 'Spencer License 94', 0),
    ('Spencer-99', 'Spencer License 99', 0),
    ('StandardML-NJ', 'Standard ML of New Jersey License', IS_DEPRECATED | IS_FSF_LIBRE),
    ('SugarCRM-1.1.3', 'SugarCRM Public License v1.1.3', 0),
    ('TAPR-OHL-1.0', 'TAPR Open Hardware License v1.0', 0),
    ('TCL', 'TCL/TK License', 0),
    ('TCP-wrappers', 'TCP Wrappers License', 0),
    ('TMate', 'TMate Open Source License', 0),
    ('TORQUE-1.1', 'TORQUE v2.5+ Software License v1.1', 0),
    ('TOSL', 'Trusster Open Source License', 0),
    ('TU-Berlin-1.0', 'Technische Universitaet Berlin License 1.0', 0),
    ('TU-Berlin-2.0', 'Technische Universitaet Berlin License 2.0', 0),
    ('UPL-1.0', 'Universal Permissive License v1.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('Unicode-DFS-2015', 'Unicode License Agreement - Data Files and Software (2015)', 0),
    ('Unicode-DFS-2016', 'Unicode License Agreement - Data Files and Software (2016)', 0),
    ('Unicode-TOU', 'Unicode Terms of Use', 0),
    ('Unlicense', 'The Unlicense', IS_FSF_LIBRE),
    ('VOSTROM', 'VOSTROM Public License for Open Source', 0),
    ('VSL-1.0', 'Vovida Software License v1.0', IS_OSI_APPROVED),
    ('Vim', 'Vim License', IS_FSF_LIBRE),
    ('W3C', 'W3C Software Notice and License (2002-12-31)', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('W3C-19980720', 'W3C Software Notice and License (1998-07-20)', 0),
    ('W3C-20150513', 'W3C Software Notice and Document License (2015-05-13)', 0),
    ('WTFPL', 'Do What The F*ck You Want To Public License', IS_FSF_LIBRE),
    ('Watcom-1.0', 'Sybase Open Watcom Public License 1.0', IS_OSI_APPROVED),
    ('Wsuipa', 'Wsuipa License', 0),
    ('X11', 'X11 License', IS_FSF_LIBRE),
    ('XFree86-1.1', 'XFree86 License 1.1', IS_FSF_LIBRE),
    ('XSkat', 'XSkat License', 0),
    ('Xerox', 'Xerox License', 0),
    ('Xnet', 'X.Net License', IS_OSI_APPROVED),
    ('YPL-1.0', 'Yahoo! Public License v1.0', 0),
    ('YPL-1.1', 'Yahoo! Public License v1.1', IS_FSF_LIBRE | IS_COPYLEFT),
    ('ZPL-1.1', 'Zope Public License 1.1', 0),
    ('ZPL-2.0', 'Zope Public License 2.0', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('ZPL-2.1', 'Zope Public License 2.1', IS_FSF_LIBRE),
    ('Zed', 'Zed License', 0),
    ('Zend-2.0', 'Zend License v2.0', IS_FSF_LIBRE),
    ('Zimbra-1.3', 'Zimbra Public License v1.3', IS_FSF_LIBRE),
    ('Zimbra-1.4', 'Zimbra Public License v1.4', 0),
    ('Zlib', 'zlib License', IS_OSI_APPROVED | IS_FSF_LIBRE),
    ('blessing', 'SQLite Blessing', 0),
    ('bzip2-1.0.5', 'bzip2 and libbzip2 License v1.0.5', 0),
    ('bzip2-1.0.6', 'bzip2 and libbzip2 License v1.0.6', 0),
    ('copyleft-next-0.3.0', 'copyleft-next 0.3.0', 0),
    ('copyleft-next-0.3.1', 'copyleft-next 0.3.1', 0),
    ('curl', 'curl License', 0),
    ('diffmark', 'diffmark license', 0),
    ('dvipdfm', 'dvipdfm License', 0),
    ('eCos-2.0', 'eCos license version 2.0', IS_DEPRECATED | IS_FSF_LIBRE),
    ('eGenix', 'eGenix.com Public License 1.1.0', 0),
    ('gSOAP-1.3b', 'gSOAP Public License v1.3b', 0),
    ('gnuplot', 'gnuplot License', IS_FSF_LIBRE),
    ('iMatix', 'iMatix Standard Function Library Agreement', IS_FSF_LIBRE),
    ('libpng-2.0', 'PNG Reference Library version 2', 0),
    ('libtiff', 'libtiff License', 0),
    ('mpich2', 'mpich2 License', 0),
    ('psfrag', 'psfrag License', 0),
    ('psutils', 'psutils License', 0),
    ('wxWindows', 'wxWindows Library License', IS_DEPRECATED),
    ('xinetd', 'xinetd License', IS_FSF_LIBRE | IS_COPYLEFT),
    ('xpp', 'XPP License', 0),
    ('zlib-acknowledgement', 'zlib/libpng License with Acknowledgement', 0),
)

# (identifier, flags)
EXCEPTIONS = (
    ('389-exception', 0),
    ('Autoconf-exception-2.0', 0),
    ('Autoconf-exception-3.0', 0),
    ('Bison-exception-2.2', 0),
    ('Bootloader-exception', 0),
    ('CLISP-exception-2.0', 0),
    ('Classpath-exception-2.0', 0),
    ('DigiRule-FOSS-exception', 0),
    ('FLTK-exception', 0),
    ('Fawkes-Runtime-exception', 0),
    ('Font-exception-2.0', 0),
    ('GCC-exception-2.0', 0),
    ('GCC-exception-3.1', 0),
    ('GPL-CC-1.0', 0),
    ('LLVM-exception', 0),
    ('LZMA-exception', 0),
    ('Libtool-exception', 0),
    ('Linux-syscall-note', 0),
    ('Nokia-Qt-exception-1.1', IS_DEPRECATED),
    ('OCCT-exception-1.0', 0),
    ('OCaml-LGPL-linking-exception', 0),
    ('OpenJDK-assembly-exception-1.0', 0),
    ('PS-or-PDF-font-exception-20170817', 0),
    ('Qt-GPL-exception-1.0', 0),
    ('Qt-LGPL-exception-1.1', 0),
    ('Qwt-exception-1.0', 0),
    ('Swift-exception', 0),
    ('Universal-FOSS-exception-1.0', 0),
    ('WxWindows-exception-3.1', 0),
    ('eCos-exception-2.0', 0),
    ('freertos-exception-2.0', 0),
    ('gnu-javamail-exception', 0),
    ('i2p-gpl-java-exception', 0),
    ('mif-exception', 0),
    ('openvpn-openssl-exception', 0),
    ('u-boot-exception-2.0', 0),
)

# Lowercase, commonly seen non-SPDX names mapped to the SPDX identifier they
# most often stand for. Matching is case-insensitive on the longest prefix.
# The lowercase form of every identifier in LICENSES is matched as well.
IMPRECISE_NAMES = (
    ('agpl v3', 'AGPL-3.0'),
    ('agpl-3', 'AGPL-3.0'),
    ('agpl3', 'AGPL-3.0'),
    ('agplv3', 'AGPL-3.0'),
    ('apache', 'Apache-2.0'),
    ('apache 1.1', 'Apache-1.1'),
    ('apache 2', 'Apache-2.0'),
    ('apache 2.0', 'Apache-2.0'),
    ('apache license 2.0', 'Apache-2.0'),
    ('apache license version 2.0', 'Apache-2.0'),
    ('apache license, version 2.0', 'Apache-2.0'),
    ('apache-2', 'Apache-2.0'),
    ('apache2', 'Apache-2.0'),
    ('artistic 2.0', 'Artistic-2.0'),
    ('asl 2.0', 'Apache-2.0'),
    ('asl2', 'Apache-2.0'),
    ('boost', 'BSL-1.0'),
    ('boost software license', 'BSL-1.0'),
    ('bsd 2-clause', 'BSD-2-Clause'),
    ('bsd 3-clause', 'BSD-3-Clause'),
    ('bsd 4-clause', 'BSD-4-Clause'),
    ('bsd-2', 'BSD-2-Clause'),
    ('bsd-3', 'BSD-3-Clause'),
    ('bsd2', 'BSD-2-Clause'),
    ('bsd3', 'BSD-3-Clause'),
    ('cc0', 'CC0-1.0'),
    ('cddl', 'CDDL-1.0'),
    ('eclipse public license 2.0', 'EPL-2.0'),
    ('epl', 'EPL-1.0'),
    ('epl2', 'EPL-2.0'),
    ('gpl v2', 'GPL-2.0'),
    ('gpl v3', 'GPL-3.0'),
    ('gpl-2', 'GPL-2.0'),
    ('gpl-3', 'GPL-3.0'),
    ('gpl2', 'GPL-2.0'),
    ('gpl3', 'GPL-3.0'),
    ('gplv2', 'GPL-2.0'),
    ('gplv3', 'GPL-3.0'),
    ('lgpl v2.1', 'LGPL-2.1'),
    ('lgpl v3', 'LGPL-3.0'),
    ('lgpl2', 'LGPL-2.0'),
    ('lgpl2.1', 'LGPL-2.1'),
    ('lgpl3', 'LGPL-3.0'),
    ('lgplv2.1', 'LGPL-2.1'),
    ('lgplv3', 'LGPL-3.0'),
    ('mit license', 'MIT'),
    ('modified bsd', 'BSD-3-Clause'),
    ('mozilla public license 2.0', 'MPL-2.0'),
    ('mpl', 'MPL-2.0'),
    ('mpl 2.0', 'MPL-2.0'),
    ('mpl-2', 'MPL-2.0'),
    ('mpl2', 'MPL-2.0'),
    ('new bsd', 'BSD-3-Clause'),
    ('new bsd license', 'BSD-3-Clause'),
    ('postgres', 'PostgreSQL'),
    ('revised bsd', 'BSD-3-Clause'),
    ('simplified bsd', 'BSD-2-Clause'),
    ('simplified bsd license', 'BSD-2-Clause'),
    ('the mit license', 'MIT'),
    ('the unlicense', 'Unlicense'),
    ('zlib license', 'Zlib'),
)
