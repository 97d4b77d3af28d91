"""Fixed course catalog written by POST /api/courses/seed."""

from schemas import Course

COURSES = [
    Course(
        name="Bachelor of Business Administration",
        code="BBA",
        duration="3 Years",
        eligibility="10+2 in any Stream",
        description="Comprehensive program covering business management, finance, marketing, and entrepreneurship.",
        fees=45000,
        seats=60,
        category="Undergraduate",
        image="https://images.unsplash.com/photo-1454165804606-c3d57bc86b40?w=800",
    ),
    Course(
        name="Bachelor of Computer Applications",
        code="BCA",
        duration="3 Years",
        eligibility="10+2 in any Stream",
        description="Focus on computer programming, software development, and IT fundamentals.",
        fees=42000,
        seats=60,
        category="Undergraduate",
        image="https://images.unsplash.com/photo-1517694712202-14dd9538aa97?w=800",
    ),
    Course(
        name="Bachelor of Commerce",
        code="BCom",
        duration="3 Years",
        eligibility="10+2 in any Stream",
        description="Covers accounting, taxation, business law, and commerce fundamentals.",
        fees=38000,
        seats=100,
        category="Undergraduate",
        image="https://images.unsplash.com/photo-1554224155-6726b3ff858f?w=800",
    ),
    Course(
        name="Bachelor of Science (Agriculture)",
        code="BSc(AG)",
        duration="4 Years",
        eligibility="10+2 Passed 50% with Bio & Agriculture",
        description="Agricultural science, crop management, and modern farming techniques.",
        fees=50000,
        seats=40,
        category="Undergraduate",
        image="https://images.unsplash.com/photo-1625246333195-78d9c38ad449?w=800",
    ),
    Course(
        name="Bachelor of Education",
        code="BEd",
        duration="2 Years",
        eligibility="Graduation in any Stream",
        description="Teacher training program focused on pedagogy and educational psychology.",
        fees=55000,
        seats=100,
        category="Postgraduate",
        image="https://images.unsplash.com/photo-1427504494785-3a9ca7044f45?w=800",
    ),
    Course(
        name="Master of Education",
        code="MEd",
        duration="2 Years",
        eligibility="Graduation in any Stream",
        description="Advanced education program for experienced teachers and educators.",
        fees=60000,
        seats=50,
        category="Postgraduate",
        image="https://images.unsplash.com/photo-1503676260728-1c00da094a0b?w=800",
    ),
    Course(
        name="Diploma in Elementary Education",
        code="DElEd",
        duration="2 Years",
        eligibility="Graduation in any Stream",
        description="Primary teacher training program (formerly known as B.T.C.).",
        fees=41000,
        seats=100,
        category="Undergraduate",
        image="https://images.unsplash.com/photo-1516321318423-f06f85e504b3?w=800",
    ),
]
