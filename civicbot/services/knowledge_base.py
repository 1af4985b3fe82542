KNOWLEDGE_BASE = {
    "organization": {
        "name_en": "Zilla Parishad Pune (ZP Pune)",
        "name_mr": "जिल्हा परिषद पुणे (झेडपी पुणे)",
        "mission_en": "To ensure holistic rural development through education, healthcare, sanitation, infrastructure, and social welfare in the Pune district.",
        "mission_mr": "पुणे जिल्ह्यातील ग्रामीण भागाचा सर्वांगीण विकास शिक्षण, आरोग्य, स्वच्छता, पायाभूत सुविधा आणि सामाजिक कल्याणाद्वारे सुनिश्चित करणे.",
    },
    "services": [
        {"name_en": "Water Supply and Sanitation", "name_mr": "पाणीपुरवठा आणि स्वच्छता"},
        {"name_en": "Primary Healthcare", "name_mr": "प्राथमिक आरोग्य सेवा"},
        {"name_en": "Road Development", "name_mr": "रस्ते विकास"},
        {"name_en": "Education", "name_mr": "शिक्षण"},
        {"name_en": "Environment and Tree Plantation", "name_mr": "पर्यावरण आणि वृक्ष लागवड"},
        {"name_en": "Agricultural Support", "name_mr": "कृषी सहाय्य"},
    ],
    "schemes": [
        {
            "name_en": "Swachh Bharat Mission",
            "name_mr": "स्वच्छ भारत मिशन",
            "eligibility_en": "All rural households without toilets are eligible.",
        },
        {
            "name_en": "Pradhan Mantri Awas Yojana",
            "name_mr": "प्रधानमंत्री आवास योजना",
            "eligibility_en": "Families without proper housing in rural areas.",
        },
        {
            "name_en": "Jalyukt Shivar Abhiyan",
            "name_mr": "जलयुक्त शिवार अभियान",
            "eligibility_en": "Villages in drought-prone areas.",
        },
        {
            "name_en": "MGNREGA",
            "name_mr": "मनरेगा",
            "eligibility_en": "Rural households willing to do unskilled manual work.",
        },
    ],
    "faq": [
        {
            "question_en": "How can I apply for a water connection?",
            "answer_en": "Visit your local ZP office with proof of residence and fill out the water connection form.",
        },
        {
            "question_en": "What are the working hours of ZP offices?",
            "answer_en": "ZP offices are open from 10 AM to 5 PM on weekdays.",
        },
        {
            "question_en": "Where can I lodge a complaint about a damaged road?",
            "answer_en": "You can lodge a complaint by messaging this bot or visiting your local ZP office.",
        },
    ],
    "offices": [
        {
            "office_name_en": "Zilla Parishad Pune Main Office",
            "address_en": "Mangalwar Peth, Pune, Maharashtra, 411011",
            "contact": "+91-20-26012345",
            "timings_en": "10:00 AM to 5:00 PM, Monday to Friday",
        },
    ],
    "complaints": {
        "process_en": "To file a complaint, mention your issue (e.g., 'Streetlight not working in Shirur'). Provide your location for quicker resolution.",
        "process_mr": "तक्रार नोंदविण्यासाठी तुमची समस्या सांगा (उदा. 'शिरूरमध्ये स्ट्रीटलाईट चालू नाही'). जलद उपायासाठी तुमचे स्थान सांगा.",
    },
    "contacts": {
        "emergency": [
            {"name_en": "Fire Brigade", "contact": "101"},
            {"name_en": "Police", "contact": "100"},
            {"name_en": "Ambulance", "contact": "108"},
        ],
    },
}
